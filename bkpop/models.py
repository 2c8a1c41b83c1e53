"""API Models - response envelope and cart request bodies."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(BaseModel):
    """Envelope returned by every cart endpoint."""
    success: bool
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = Field(default=None, serialization_alias="errorCode")

    @classmethod
    def ok(cls, data: Any = None, message: str = "Request succeeded") -> "ApiResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error_code: str) -> "ApiResponse":
        return cls(success=False, message=message, error_code=error_code)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ==================== CART MODELS ====================

class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: Optional[int] = Field(default=None, alias="userId")
    product_id: Optional[int] = Field(default=None, alias="productId")
    title: Optional[str] = None
    image: Optional[str] = None
    size: Optional[str] = None
    price: Optional[int] = None
    quantity: Optional[int] = None


class UpdateCartItemRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    quantity: Optional[int] = None  # 0 removes the line
