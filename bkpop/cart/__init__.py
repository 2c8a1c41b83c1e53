"""Cart package: models, persistence backends, and the cart store."""
from .models import CartLine, ProductRef
from .identity import IdentityObserver
from .local import LocalCartStorage, LocalCartBackend
from .remote import CartApiClient, RemoteCartBackend
from .service import CartStore, create_cart_store

__all__ = [
    "CartLine",
    "ProductRef",
    "IdentityObserver",
    "LocalCartStorage",
    "LocalCartBackend",
    "CartApiClient",
    "RemoteCartBackend",
    "CartStore",
    "create_cart_store",
]
