"""Cart Repository - per-user cart rows.

All methods use async/await with supabase-py v2.
"""

from datetime import UTC, datetime
from typing import Any

from .base import BaseRepository

CART_TABLE = "cart"
USERS_TABLE = "users"


class CartRepository(BaseRepository):
    """Cart table operations."""

    async def user_exists(self, user_id: int) -> bool:
        result = (
            await self.client.table(USERS_TABLE).select("id").eq("id", user_id).limit(1).execute()
        )
        return bool(result.data)

    async def list_by_user(self, user_id: int) -> list[dict[str, Any]]:
        """All lines of a user, newest first."""
        result = (
            await self.client.table(CART_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []

    async def get_by_id(self, line_id: int) -> dict[str, Any] | None:
        result = (
            await self.client.table(CART_TABLE)
            .select("id, user_id, product_id, title")
            .eq("id", line_id)
            .execute()
        )
        return result.data[0] if result.data else None

    async def add_or_increment(
        self,
        user_id: int,
        product_id: int,
        title: str,
        image: str | None,
        size: str | None,
        price: int,
        quantity: int,
    ) -> None:
        """Insert a line or add to the existing (user, product) line.

        Runs as one Postgres function so concurrent adds cannot create
        duplicate lines (see migrations/001_cart.sql).
        """
        await self.client.rpc(
            "cart_add_or_increment",
            {
                "p_user_id": user_id,
                "p_product_id": product_id,
                "p_title": title,
                "p_image": image,
                "p_size": size,
                "p_price": price,
                "p_quantity": quantity,
            },
        ).execute()

    async def update_quantity(self, line_id: int, quantity: int) -> None:
        await (
            self.client.table(CART_TABLE)
            .update({"quantity": quantity, "updated_at": datetime.now(UTC).isoformat()})
            .eq("id", line_id)
            .execute()
        )

    async def delete(self, line_id: int) -> None:
        await self.client.table(CART_TABLE).delete().eq("id", line_id).execute()

    async def delete_by_user(self, user_id: int) -> None:
        await self.client.table(CART_TABLE).delete().eq("user_id", user_id).execute()
