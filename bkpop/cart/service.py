"""Cart store: the single source of truth for what is in the cart."""
import asyncio
from typing import Awaitable, Callable, List, Optional, Tuple

from bkpop.errors import (
    CartError,
    ERROR_LOAD_FAILED,
    ERROR_ADD_FAILED,
    ERROR_REMOVE_FAILED,
    ERROR_UPDATE_FAILED,
    ERROR_CLEAR_FAILED,
)
from bkpop.logging import get_logger, describe_owner
from bkpop.services.money import format_price

from .backends import CartBackend
from .identity import IdentityObserver
from .local import LocalCartBackend, LocalCartStorage
from .models import CartLine, ProductRef, total_items, total_price
from .remote import CartApiClient, RemoteCartBackend

logger = get_logger(__name__)

Mutation = Callable[[CartBackend], Awaitable[None]]


class CartStore:
    """
    Dual-mode cart for one browser session.

    Anonymous visitors use the local snapshot backend, signed-in users the
    remote one. Every operation runs against the current backend and then
    replaces ``items`` with the backend's full list (read-after-write).

    Features:
    - Operations are serialized by a lock
    - A monotonic operation counter drops reloads that finish after the
      identity changed
    - Failures land in ``error``; nothing is raised to the caller
    """

    def __init__(
        self,
        identity: IdentityObserver,
        local: LocalCartBackend,
        api: CartApiClient,
        owns_api: bool = False,
    ):
        self.identity = identity
        self._local = local
        self._api = api
        self._owns_api = owns_api
        self._backend: CartBackend = local
        self._items: List[CartLine] = []
        self._error: Optional[str] = None
        self._pending = 0
        self._generation = 0
        self._lock = asyncio.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ==========================================
    # State
    # ==========================================

    @property
    def items(self) -> Tuple[CartLine, ...]:
        return tuple(line.copy() for line in self._items)

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_authenticated(self) -> bool:
        return self._backend.authenticated

    def get_total_price(self) -> int:
        return total_price(self._items)

    def get_total_items(self) -> int:
        return total_items(self._items)

    def clear_error(self) -> None:
        self._error = None

    # ==========================================
    # Lifecycle
    # ==========================================

    async def start(self) -> None:
        """Subscribe to identity changes and load the current owner's cart."""
        if self._unsubscribe is None:
            self._unsubscribe = self.identity.subscribe(self._on_identity_change)
        await self._switch_owner(self.identity.current_user_id)

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._owns_api:
            await self._api.aclose()

    async def __aenter__(self) -> "CartStore":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ==========================================
    # Mutations
    # ==========================================

    async def add_item(self, product: ProductRef, quantity: int = 1) -> bool:
        """Add ``quantity`` of ``product``; an existing line is incremented."""
        return await self._run(
            "add",
            ERROR_ADD_FAILED,
            lambda backend: backend.add_or_increment(product, quantity),
        )

    async def remove_item(self, line_id: int) -> bool:
        return await self._run(
            "remove",
            ERROR_REMOVE_FAILED,
            lambda backend: backend.remove(line_id),
        )

    async def update_quantity(self, line_id: int, quantity: int) -> bool:
        """Set a line's quantity. Zero or less removes the line."""
        if isinstance(quantity, (int, float)) and quantity <= 0:
            return await self._run(
                "update",
                ERROR_UPDATE_FAILED,
                lambda backend: backend.remove(line_id),
            )
        return await self._run(
            "update",
            ERROR_UPDATE_FAILED,
            lambda backend: backend.update(line_id, quantity),
        )

    async def clear_cart(self) -> bool:
        return await self._run(
            "clear",
            ERROR_CLEAR_FAILED,
            lambda backend: backend.clear_all(),
        )

    async def refresh_cart(self) -> bool:
        """Reload from whichever backend is authoritative right now."""
        return await self._run("refresh", ERROR_LOAD_FAILED, None, fresh=True)

    # ==========================================
    # Private helpers
    # ==========================================

    async def _on_identity_change(self, user_id: Optional[int]) -> None:
        await self._switch_owner(user_id)

    async def _switch_owner(self, user_id: Optional[int]) -> None:
        # Anything still in flight belongs to the previous owner
        self._generation += 1
        if user_id is None:
            self._backend = self._local
        else:
            self._backend = RemoteCartBackend(self._api, user_id)
        self._items = []
        self._error = None
        logger.info(f"Cart owner is now {describe_owner(user_id)}")
        await self._run("load", ERROR_LOAD_FAILED, None, fresh=True)

    async def _run(
        self,
        action: str,
        fallback_message: str,
        mutate: Optional[Mutation],
        fresh: bool = False,
    ) -> bool:
        """
        Run one operation against the current backend and reload.

        Returns True when ``items`` was replaced with the backend's list.
        """
        backend = self._backend
        self._pending += 1
        try:
            async with self._lock:
                if backend is not self._backend:
                    # Owner changed while this call was queued
                    logger.debug(f"Skipping cart {action} queued for the previous owner")
                    return False
                self._generation += 1
                ticket = self._generation
                self._error = None
                try:
                    if mutate is not None:
                        await mutate(backend)
                    lines = await (backend.reload() if fresh else backend.list())
                except CartError as e:
                    logger.warning(f"Cart {action} failed ({e.kind.value}): {e.message}")
                    if self._is_current(ticket, backend):
                        self._error = e.message
                    return False
                except Exception:
                    logger.error(f"Cart {action} failed", exc_info=True)
                    if self._is_current(ticket, backend):
                        self._error = fallback_message
                    return False

                if not self._is_current(ticket, backend):
                    logger.debug(f"Discarding stale cart reload after {action}")
                    return False
                self._items = lines
                logger.debug(
                    f"Cart {action}: {total_items(lines)} items, {format_price(total_price(lines))}"
                )
                return True
        finally:
            self._pending -= 1

    def _is_current(self, ticket: int, backend: CartBackend) -> bool:
        return ticket == self._generation and backend is self._backend


def create_cart_store(
    session_id: str,
    identity: IdentityObserver,
    api: Optional[CartApiClient] = None,
    redis=None,
) -> CartStore:
    """
    Build a cart store for one browser session.

    The store is not started; use ``async with`` or call ``start()``.
    """
    local = LocalCartBackend(LocalCartStorage(session_id, redis=redis))
    owns_api = api is None
    return CartStore(identity, local, api or CartApiClient(), owns_api=owns_api)
