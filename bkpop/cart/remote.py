"""
Authenticated cart persistence.

Talks to the cart API over HTTP. Every call is one round trip returning
the ``{success, message, data, errorCode}`` envelope; failed envelopes are
turned back into typed cart errors.
"""
from typing import Any, List, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from bkpop.config import CART_API_URL, CART_API_TIMEOUT
from bkpop.errors import (
    CartError,
    CartPersistenceError,
    error_from_code,
    ERROR_CART_SERVICE_UNAVAILABLE,
    ERROR_INTERNAL,
)
from bkpop.logging import get_logger, sanitize_id_for_logging

from .backends import CartBackend, require_positive_quantity
from .models import CartLine, ProductRef

logger = get_logger(__name__)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, CartError) and error.retryable


class CartApiClient:
    """HTTP client for the per-user cart collection."""

    def __init__(
        self,
        base_url: str = CART_API_URL,
        timeout: float = CART_API_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # Reads are idempotent, so transient storage failures are retried
    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=1),
        reraise=True,
    )
    async def list(self, owner_id: int) -> List[CartLine]:
        """Get all lines of ``owner_id``, newest first."""
        data = await self._request("GET", "/api/cart", params={"userId": owner_id})
        rows = (data or {}).get("items") or []
        try:
            return [CartLine.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed cart rows for user {sanitize_id_for_logging(owner_id)}: {e}")
            raise CartError(ERROR_INTERNAL) from e

    async def add_or_increment(
        self,
        owner_id: int,
        product_id: int,
        unit_price: int,
        quantity: int,
        title: str,
        image: str = "",
        size: str = "",
    ) -> None:
        """Server-side upsert on (owner, product)."""
        await self._request(
            "POST",
            "/api/cart",
            json={
                "userId": owner_id,
                "productId": product_id,
                "title": title,
                "image": image,
                "size": size,
                "price": unit_price,
                "quantity": quantity,
            },
        )

    async def update(self, line_id: int, quantity: int) -> None:
        """Set quantity; the server deletes the line when it is 0."""
        await self._request("PUT", f"/api/cart/{line_id}", json={"quantity": quantity})

    async def remove(self, line_id: int) -> None:
        await self._request("DELETE", f"/api/cart/{line_id}")

    async def clear_all(self, owner_id: int) -> None:
        await self._request("DELETE", "/api/cart", params={"userId": owner_id})

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Cart API {method} {path} failed: {type(e).__name__}")
            raise CartPersistenceError(ERROR_CART_SERVICE_UNAVAILABLE) from e

        try:
            envelope = response.json()
        except ValueError as e:
            logger.error(f"Cart API {method} {path} returned non-JSON (HTTP {response.status_code})")
            raise CartPersistenceError(ERROR_CART_SERVICE_UNAVAILABLE) from e

        if not isinstance(envelope, dict):
            raise CartPersistenceError(ERROR_CART_SERVICE_UNAVAILABLE)
        if not envelope.get("success"):
            raise error_from_code(
                envelope.get("errorCode"),
                envelope.get("message"),
                response.status_code,
            )
        return envelope.get("data")


class RemoteCartBackend(CartBackend):
    """Cart backend bound to one signed-in user."""

    authenticated = True

    def __init__(self, api: CartApiClient, owner_id: int):
        self.api = api
        self.owner_id = owner_id

    async def list(self) -> List[CartLine]:
        return await self.api.list(self.owner_id)

    async def add_or_increment(self, product: ProductRef, quantity: int) -> None:
        require_positive_quantity(quantity)
        await self.api.add_or_increment(
            self.owner_id,
            product.id,
            product.unit_price,
            quantity,
            title=product.title,
            image=product.image,
            size=product.size,
        )

    async def update(self, line_id: int, quantity: int) -> None:
        require_positive_quantity(quantity)
        await self.api.update(line_id, quantity)

    async def remove(self, line_id: int) -> None:
        await self.api.remove(line_id)

    async def clear_all(self) -> None:
        await self.api.clear_all(self.owner_id)
