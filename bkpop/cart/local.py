"""
Anonymous cart persistence.

One JSON snapshot per browser profile, stored in Upstash Redis under a
fixed key and always written as a whole. If Redis cannot be reached the
storage switches to an in-memory snapshot for the rest of the session.
"""
import json
import time
from typing import List, Optional

from bkpop.db import get_redis_sync, RedisKeys, TTL
from bkpop.errors import LineNotFoundError, ERROR_LINE_NOT_FOUND
from bkpop.logging import get_logger, sanitize_id_for_logging

from .backends import CartBackend, require_positive_quantity
from .models import CartLine, ProductRef

logger = get_logger(__name__)


class LocalCartStorage:
    """Synchronous whole-list snapshot store for the anonymous cart."""

    def __init__(self, session_id: str, redis=None, ttl: int = TTL.ANONYMOUS_CART):
        self.key = RedisKeys.anonymous_cart_key(session_id)
        self.ttl = ttl
        self._redis = redis
        self._memory: Optional[str] = None
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """True once the storage fell back to memory-only mode."""
        return self._degraded

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis_sync()
        return self._redis

    def load(self) -> List[CartLine]:
        """Read the snapshot. Missing or corrupt data loads as an empty cart."""
        raw = self._memory
        if not self._degraded:
            try:
                raw = self.redis.get(self.key)
            except Exception as e:
                self._degrade("load", e)
                raw = self._memory
        if not raw:
            return []

        try:
            return _parse_snapshot(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            session = sanitize_id_for_logging(self.key.rsplit(":", 1)[-1])
            logger.warning(f"Corrupted anonymous cart {session}: {e}")
            self.clear()
            return []

    def save(self, lines: List[CartLine]) -> None:
        """Replace the snapshot with ``lines``."""
        payload = json.dumps([line.to_dict() for line in lines], ensure_ascii=False)
        self._memory = payload
        if self._degraded:
            return
        try:
            self.redis.set(self.key, payload, ex=self.ttl)
        except Exception as e:
            self._degrade("save", e)

    def clear(self) -> None:
        """Remove the snapshot."""
        self._memory = None
        if self._degraded:
            return
        try:
            self.redis.delete(self.key)
        except Exception as e:
            self._degrade("clear", e)

    def _degrade(self, operation: str, error: Exception) -> None:
        self._degraded = True
        logger.warning(
            f"Anonymous cart storage unavailable during {operation} "
            f"({type(error).__name__}); keeping the cart in memory"
        )


class LocalCartBackend(CartBackend):
    """
    Cart backend for anonymous visitors.

    Mutations are applied to a copy of the in-memory lines; the copy is
    committed and mirrored to storage only once the mutation succeeded.
    """

    authenticated = False

    def __init__(self, storage: LocalCartStorage):
        self.storage = storage
        self._lines: List[CartLine] = []
        self._last_id = 0

    async def list(self) -> List[CartLine]:
        return [line.copy() for line in self._lines]

    async def reload(self) -> List[CartLine]:
        self._lines = self.storage.load()
        return await self.list()

    async def add_or_increment(self, product: ProductRef, quantity: int) -> None:
        require_positive_quantity(quantity)

        lines = [line.copy() for line in self._lines]
        existing = next((line for line in lines if line.product_id == product.id), None)
        if existing:
            # Price stays the one captured when the line was created
            existing.quantity += quantity
        else:
            lines.append(
                CartLine(
                    id=self._next_id(lines),
                    product_id=product.id,
                    title=product.title,
                    image=product.image,
                    size=product.size,
                    unit_price=product.unit_price,
                    quantity=quantity,
                )
            )
        self._commit(lines)

    async def update(self, line_id: int, quantity: int) -> None:
        require_positive_quantity(quantity)
        lines = [line.copy() for line in self._lines]
        line = _find(lines, line_id)
        line.quantity = quantity
        self._commit(lines)

    async def remove(self, line_id: int) -> None:
        _find(self._lines, line_id)
        self._commit([line.copy() for line in self._lines if line.id != line_id])

    async def clear_all(self) -> None:
        self._lines = []
        self.storage.clear()

    def _commit(self, lines: List[CartLine]) -> None:
        self._lines = lines
        self.storage.save(lines)

    def _next_id(self, lines: List[CartLine]) -> int:
        """Millisecond timestamp id, bumped past ids already in use."""
        taken = {line.id for line in lines}
        candidate = max(int(time.time() * 1000), self._last_id + 1)
        while candidate in taken:
            candidate += 1
        self._last_id = candidate
        return candidate


def _find(lines: List[CartLine], line_id: int) -> CartLine:
    for line in lines:
        if line.id == line_id:
            return line
    raise LineNotFoundError(ERROR_LINE_NOT_FOUND)


def _parse_snapshot(raw: str) -> List[CartLine]:
    entries = json.loads(raw)
    if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
        raise ValueError("snapshot is not a list of cart lines")
    return [CartLine.from_dict(entry) for entry in entries]
