"""Persistence strategy shared by the local and remote cart backends."""
from abc import ABC, abstractmethod
from typing import List

from bkpop.errors import CartValidationError, CODE_INVALID_QUANTITY, ERROR_INVALID_QUANTITY

from .models import CartLine, ProductRef


class CartBackend(ABC):
    """
    Authoritative storage for one owner's cart.

    The cart store only talks to this interface: after every mutation it
    calls ``list()`` and replaces its in-memory lines with the result.
    """

    #: True when the backend belongs to a signed-in user
    authenticated: bool = False

    @abstractmethod
    async def list(self) -> List[CartLine]:
        """Return the full, ordered line list."""

    @abstractmethod
    async def add_or_increment(self, product: ProductRef, quantity: int) -> None:
        """Add ``quantity`` of ``product``, merging into an existing line."""

    @abstractmethod
    async def update(self, line_id: int, quantity: int) -> None:
        """Set a line's quantity (positive only; removals go through ``remove``)."""

    @abstractmethod
    async def remove(self, line_id: int) -> None:
        """Delete a single line."""

    @abstractmethod
    async def clear_all(self) -> None:
        """Delete every line of the owner."""

    async def reload(self) -> List[CartLine]:
        """Re-read from the underlying storage. Defaults to ``list()``."""
        return await self.list()

    async def aclose(self) -> None:
        """Release resources owned by the backend."""


def require_positive_quantity(quantity) -> None:
    """Raise CartValidationError unless ``quantity`` is an int of at least 1."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise CartValidationError(ERROR_INVALID_QUANTITY, code=CODE_INVALID_QUANTITY)
