"""Runtime configuration read from environment variables."""
import os

# Supabase (server cart table)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

# Upstash Redis (anonymous cart snapshots)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart API consumed by the remote adapter
CART_API_URL = os.environ.get("CART_API_URL", "http://localhost:8000")


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


CART_API_TIMEOUT = _float_env("CART_API_TIMEOUT", 10.0)
