"""
Cart Router

Per-user cart collection consumed by the remote cart backend.

Every endpoint answers with the ``{success, message, data, errorCode}``
envelope. Failures are raised as CartError and rendered by the app-level
exception handler.
"""
from typing import Any, Awaitable, Optional, TypeVar

from fastapi import APIRouter, Depends, Query

from bkpop.errors import (
    CartPersistenceError,
    CartValidationError,
    LineNotFoundError,
    OwnerNotFoundError,
    CODE_INVALID_QUANTITY,
    ERROR_DATABASE_QUERY,
    ERROR_INVALID_LINE_ID,
    ERROR_INVALID_PRICE,
    ERROR_INVALID_PRODUCT_ID,
    ERROR_INVALID_QUANTITY,
    ERROR_INVALID_UPDATE_QUANTITY,
    ERROR_INVALID_USER_ID,
    ERROR_LINE_NOT_FOUND,
    ERROR_MISSING_FIELDS,
    ERROR_QUANTITY_REQUIRED,
    ERROR_USER_ID_REQUIRED,
    ERROR_USER_NOT_FOUND,
)
from bkpop.logging import get_logger, sanitize_id_for_logging
from bkpop.models import AddToCartRequest, ApiResponse, UpdateCartItemRequest
from bkpop.services.money import format_price
from bkpop.services.repositories import CartRepository

from .deps import get_cart_repository

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])

T = TypeVar("T")


@router.get("/cart")
async def get_cart(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    repo: CartRepository = Depends(get_cart_repository),
):
    """List a user's cart lines, newest first."""
    user_id = _parse_id(user_id, ERROR_USER_ID_REQUIRED, ERROR_INVALID_USER_ID)
    await _ensure_user(repo, user_id)

    rows = await _storage(repo.list_by_user(user_id), "list")
    return ApiResponse.ok({"items": rows}, "Cart loaded").to_json()


@router.post("/cart")
async def add_to_cart(
    request: AddToCartRequest,
    repo: CartRepository = Depends(get_cart_repository),
):
    """Add a product, or add to the quantity of its existing line."""
    required = {
        "userId": request.user_id,
        "productId": request.product_id,
        "title": request.title,
        "price": request.price,
    }
    missing = [name for name, value in required.items() if value is None or value == ""]
    if missing:
        raise CartValidationError(f"{ERROR_MISSING_FIELDS}: {', '.join(missing)}")

    _require_positive(request.user_id, ERROR_INVALID_USER_ID)
    _require_positive(request.product_id, ERROR_INVALID_PRODUCT_ID)
    _require_positive(request.price, ERROR_INVALID_PRICE)
    quantity = 1 if request.quantity is None else request.quantity
    _require_positive(quantity, ERROR_INVALID_QUANTITY, CODE_INVALID_QUANTITY)

    await _ensure_user(repo, request.user_id)
    await _storage(
        repo.add_or_increment(
            user_id=request.user_id,
            product_id=request.product_id,
            title=request.title,
            image=request.image,
            size=request.size,
            price=request.price,
            quantity=quantity,
        ),
        "add",
    )
    logger.info(
        f"Cart add: user={sanitize_id_for_logging(request.user_id)} "
        f"product={request.product_id} qty={quantity} price={format_price(request.price)}"
    )
    return ApiResponse.ok(message="Product added to cart").to_json()


@router.delete("/cart")
async def clear_cart(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    repo: CartRepository = Depends(get_cart_repository),
):
    """Delete every line of a user."""
    user_id = _parse_id(user_id, ERROR_USER_ID_REQUIRED, ERROR_INVALID_USER_ID)
    await _ensure_user(repo, user_id)

    await _storage(repo.delete_by_user(user_id), "clear")
    return ApiResponse.ok(message="Cart emptied").to_json()


@router.put("/cart/{line_id}")
async def update_cart_item(
    line_id: str,
    request: UpdateCartItemRequest,
    repo: CartRepository = Depends(get_cart_repository),
):
    """Set a line's quantity. Quantity 0 deletes the line."""
    cart_id = _parse_id(line_id, ERROR_INVALID_LINE_ID, ERROR_INVALID_LINE_ID)
    if request.quantity is None:
        raise CartValidationError(ERROR_QUANTITY_REQUIRED)
    if request.quantity < 0:
        raise CartValidationError(ERROR_INVALID_UPDATE_QUANTITY, code=CODE_INVALID_QUANTITY)

    await _ensure_line(repo, cart_id)

    if request.quantity == 0:
        await _storage(repo.delete(cart_id), "update")
        return ApiResponse.ok(message="Product removed from cart").to_json()

    await _storage(repo.update_quantity(cart_id, request.quantity), "update")
    return ApiResponse.ok(message="Cart updated").to_json()


@router.delete("/cart/{line_id}")
async def remove_cart_item(
    line_id: str,
    repo: CartRepository = Depends(get_cart_repository),
):
    """Delete a single line."""
    cart_id = _parse_id(line_id, ERROR_INVALID_LINE_ID, ERROR_INVALID_LINE_ID)
    await _ensure_line(repo, cart_id)

    await _storage(repo.delete(cart_id), "remove")
    return ApiResponse.ok(message="Product removed from cart").to_json()


# ==========================================
# Private helpers
# ==========================================

def _parse_id(raw: Optional[str], missing_message: str, invalid_message: str) -> int:
    if raw is None or raw == "":
        raise CartValidationError(missing_message)
    try:
        value = int(raw)
    except ValueError:
        raise CartValidationError(invalid_message) from None
    _require_positive(value, invalid_message)
    return value


def _require_positive(value: Any, message: str, code: Optional[str] = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise CartValidationError(message, code=code)


async def _storage(call: Awaitable[T], operation: str) -> T:
    """Await a repository call, mapping storage failures to DATABASE_QUERY_ERROR."""
    try:
        return await call
    except Exception as e:
        logger.error(f"Cart storage {operation} failed: {type(e).__name__}", exc_info=True)
        raise CartPersistenceError(ERROR_DATABASE_QUERY) from e


async def _ensure_user(repo: CartRepository, user_id: int) -> None:
    if not await _storage(repo.user_exists(user_id), "user lookup"):
        raise OwnerNotFoundError(ERROR_USER_NOT_FOUND)


async def _ensure_line(repo: CartRepository, line_id: int) -> None:
    if await _storage(repo.get_by_id(line_id), "line lookup") is None:
        raise LineNotFoundError(ERROR_LINE_NOT_FOUND)
