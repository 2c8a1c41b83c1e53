"""
Database Module - Supabase and Redis Clients

Provides singleton instances of:
- Async Supabase client for the server-side cart table
- Sync Upstash Redis client for anonymous cart snapshots
"""

from typing import Optional

from supabase._async.client import AsyncClient, create_client as acreate_client
from upstash_redis import Redis

from bkpop.config import (
    SUPABASE_URL,
    SUPABASE_SERVICE_ROLE_KEY,
    UPSTASH_REDIS_REST_URL,
    UPSTASH_REDIS_REST_TOKEN,
)


_async_supabase_client: Optional[AsyncClient] = None
_sync_redis_client: Optional[Redis] = None


async def get_supabase() -> AsyncClient:
    """
    Get async Supabase client (singleton).
    Used by the cart API repositories.
    """
    global _async_supabase_client

    if _async_supabase_client is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _async_supabase_client = await acreate_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)

    return _async_supabase_client


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    The anonymous cart snapshot is read and written synchronously, so only
    the sync client is needed.
    """
    global _sync_redis_client

    if _sync_redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _sync_redis_client = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _sync_redis_client


class RedisKeys:
    """Redis key prefixes for different data types."""

    # Anonymous cart snapshot, one per browser profile
    ANONYMOUS_CART = "cart:anon:"  # cart:anon:{session_id}

    @staticmethod
    def anonymous_cart_key(session_id: str) -> str:
        return f"{RedisKeys.ANONYMOUS_CART}{session_id}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    ANONYMOUS_CART = 2592000  # 30 days
