"""
Cart Errors

Error codes and messages shared by the cart API and the cart store, plus
the exception hierarchy used to carry them.
"""
from enum import Enum
from typing import Optional


# Machine error codes (sent as ``errorCode`` in API envelopes)
CODE_UNKNOWN = "UNKNOWN_ERROR"
CODE_VALIDATION = "VALIDATION_ERROR"
CODE_INVALID_QUANTITY = "CART_INVALID_QUANTITY"
CODE_USER_NOT_FOUND = "USER_NOT_FOUND"
CODE_CART_ITEM_NOT_FOUND = "CART_ITEM_NOT_FOUND"
CODE_DATABASE_QUERY = "DATABASE_QUERY_ERROR"

# User errors
ERROR_USER_ID_REQUIRED = "User ID is required"
ERROR_INVALID_USER_ID = "Invalid user ID"
ERROR_USER_NOT_FOUND = "User not found"

# Cart errors
ERROR_LINE_ID_REQUIRED = "Cart item ID is required"
ERROR_INVALID_LINE_ID = "Invalid cart item ID"
ERROR_LINE_NOT_FOUND = "Cart item not found"
ERROR_INVALID_PRODUCT_ID = "Invalid product ID"
ERROR_INVALID_PRICE = "Invalid price"
ERROR_INVALID_QUANTITY = "Invalid quantity"
ERROR_INVALID_UPDATE_QUANTITY = "Invalid quantity (must be an integer of 0 or more)"
ERROR_QUANTITY_REQUIRED = "Quantity is required"
ERROR_MISSING_FIELDS = "Missing required fields"

# Storage errors
ERROR_DATABASE_QUERY = "Cart storage is temporarily unavailable"
ERROR_CART_SERVICE_UNAVAILABLE = "Cart service unavailable"

# Generic errors
ERROR_INVALID_REQUEST = "Invalid request"
ERROR_INTERNAL = "Internal server error"

# Store-level fallback messages, shown when a failure carries no message
ERROR_LOAD_FAILED = "Failed to load the cart"
ERROR_ADD_FAILED = "Failed to add the product to the cart"
ERROR_REMOVE_FAILED = "Failed to remove the product from the cart"
ERROR_UPDATE_FAILED = "Failed to change the quantity"
ERROR_CLEAR_FAILED = "Failed to empty the cart"


class ErrorKind(str, Enum):
    """Coarse error taxonomy used by the store to decide how to react."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"
    UNKNOWN = "unknown"


class CartError(Exception):
    """Base class for every cart failure."""

    kind = ErrorKind.UNKNOWN
    default_code = CODE_UNKNOWN
    default_status = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.PERSISTENCE


class CartValidationError(CartError):
    """Bad quantity, price or id shape."""
    kind = ErrorKind.VALIDATION
    default_code = CODE_VALIDATION
    default_status = 400


class OwnerNotFoundError(CartError):
    """The cart owner does not exist."""
    kind = ErrorKind.NOT_FOUND
    default_code = CODE_USER_NOT_FOUND
    default_status = 404


class LineNotFoundError(CartError):
    """The cart line does not exist."""
    kind = ErrorKind.NOT_FOUND
    default_code = CODE_CART_ITEM_NOT_FOUND
    default_status = 404


class CartPersistenceError(CartError):
    """Network or storage unavailable."""
    kind = ErrorKind.PERSISTENCE
    default_code = CODE_DATABASE_QUERY
    default_status = 500


_ERRORS_BY_CODE = {
    CODE_VALIDATION: CartValidationError,
    CODE_INVALID_QUANTITY: CartValidationError,
    CODE_USER_NOT_FOUND: OwnerNotFoundError,
    CODE_CART_ITEM_NOT_FOUND: LineNotFoundError,
    CODE_DATABASE_QUERY: CartPersistenceError,
}


def error_from_code(
    code: Optional[str],
    message: Optional[str],
    status_code: Optional[int] = None,
) -> CartError:
    """Rebuild a typed CartError from an API envelope's errorCode."""
    error_cls = _ERRORS_BY_CODE.get(code or "", CartError)
    return error_cls(message or ERROR_INTERNAL, code=code or None, status_code=status_code)
