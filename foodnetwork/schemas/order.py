from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from foodnetwork.models.order import OrderStatus
from foodnetwork.schemas.common import Money


class OrderCreate(BaseModel):
    """Schema for placing a new order."""
    product_id: int = Field(..., description="ID of the product to purchase")
    quantity: int = Field(..., ge=1, description="Quantity to purchase")


class OrderResponse(BaseModel):
    """Schema for order response."""
    id: int
    user_id: int
    product_id: int
    quantity: int
    unit_price: Money
    total_price: Money
    status: OrderStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderWithProduct(OrderResponse):
    """Schema for order response including product (and, for admins, buyer) details."""
    product_name: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class OrderListResponse(BaseModel):
    """Schema for paginated order list response."""
    items: list[OrderWithProduct]
    total: int
    page: int
    page_size: int
    total_pages: int
