"""Cart models with integer pricing."""
from dataclasses import dataclass, replace
from typing import Optional

from bkpop.services.money import parse_price, line_total


@dataclass(frozen=True)
class ProductRef:
    """Catalog product as seen by the cart at add time."""
    id: int
    title: str
    image: str = ""
    size: str = ""
    display_price: str = "0"

    @property
    def unit_price(self) -> int:
        return parse_price(self.display_price)


@dataclass
class CartLine:
    """Single line in the cart, one per distinct product."""
    id: int
    product_id: int
    title: str
    unit_price: int
    quantity: int
    image: str = ""
    size: str = ""
    user_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def line_total(self) -> int:
        """Always recomputed from price and quantity."""
        return line_total(self.unit_price, self.quantity)

    def copy(self, **changes) -> "CartLine":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to the JSON shape shared by the API and the local snapshot."""
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "title": self.title,
            "image": self.image,
            "size": self.size,
            "price": self.unit_price,
            "quantity": self.quantity,
            "totalPrice": self.line_total,
        }
        if self.user_id is not None:
            data["user_id"] = self.user_id
        if self.created_at:
            data["created_at"] = self.created_at
        if self.updated_at:
            data["updated_at"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Create from an API row or snapshot entry. ``totalPrice`` is ignored."""
        user_id = data.get("user_id")
        return cls(
            id=int(data["id"]),
            product_id=int(data["product_id"]),
            title=data.get("title") or "",
            image=data.get("image") or "",
            size=data.get("size") or "",
            unit_price=parse_price(data.get("price")),
            quantity=int(data["quantity"]),
            user_id=int(user_id) if user_id is not None else None,
            created_at=_as_str(data.get("created_at")),
            updated_at=_as_str(data.get("updated_at")),
        )


def _as_str(value) -> Optional[str]:
    return str(value) if value else None


def total_price(lines) -> int:
    """Sum of line totals."""
    return sum(line.line_total for line in lines)


def total_items(lines) -> int:
    """Sum of quantities."""
    return sum(line.quantity for line in lines)
