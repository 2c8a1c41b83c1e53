"""
BKPOP Core Module

This package contains the cart synchronization engine and its collaborators:
- db: Database clients (Supabase + Redis)
- cart: dual-mode cart store (local snapshot / server cart)
- services: price helpers and Supabase repositories
- routers: server-side cart API

Note: Imports are lazy so that importing the cart store does not require
Supabase or Redis credentials.
"""

__all__ = [
    "get_supabase",
    "get_redis_sync",
    "create_cart_store",
    "IdentityObserver",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "get_supabase":
        from bkpop.db import get_supabase
        return get_supabase
    elif name == "get_redis_sync":
        from bkpop.db import get_redis_sync
        return get_redis_sync
    elif name == "create_cart_store":
        from bkpop.cart import create_cart_store
        return create_cart_store
    elif name == "IdentityObserver":
        from bkpop.cart import IdentityObserver
        return IdentityObserver
    raise AttributeError(f"module 'bkpop' has no attribute '{name}'")
