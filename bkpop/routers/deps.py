"""
Shared Dependencies for Routers

Repositories are built per request on top of the Supabase singleton.
"""

from bkpop.db import get_supabase
from bkpop.services.repositories import CartRepository


async def get_cart_repository() -> CartRepository:
    """FastAPI dependency returning a CartRepository."""
    return CartRepository(await get_supabase())
