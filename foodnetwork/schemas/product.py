from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from foodnetwork.models.product import MovementType
from foodnetwork.schemas.common import Money


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, max_length=100, description="Product category")
    unit_price: Money = Field(..., gt=0, max_digits=10, decimal_places=2, description="Price per unit (must be positive)")
    current_stock: int = Field(0, ge=0, description="Units on hand (must be non-negative)")
    units_per_case: Optional[int] = Field(None, ge=1, description="Units per supplier case")
    unit_size: Optional[str] = Field(None, max_length=100, description="Size of one unit, e.g. '25 lb bag'")
    total_units: Optional[int] = Field(None, ge=0, description="Units bought in for the current batch")
    sold_units: Optional[int] = Field(None, ge=0, description="Units of the current batch already sold")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(BaseModel):
    """Schema for updating an existing product. All fields are optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    unit_price: Optional[Money] = Field(None, gt=0, max_digits=10, decimal_places=2)
    current_stock: Optional[int] = Field(None, ge=0)
    units_per_case: Optional[int] = Field(None, ge=1)
    unit_size: Optional[str] = Field(None, max_length=100)
    total_units: Optional[int] = Field(None, ge=0)
    sold_units: Optional[int] = Field(None, ge=0)


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class StockAdjustment(BaseModel):
    """Schema for a manual stock correction."""
    delta: int = Field(..., description="Signed change in units; must not be zero")
    reason: Optional[str] = Field(None, max_length=500, description="Why the stock changed")


class MovementResponse(BaseModel):
    """Schema for a stock movement audit entry."""
    id: int
    product_id: int
    movement_type: MovementType
    quantity: int
    user_id: int
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InventoryItem(BaseModel):
    """Storefront view of a product."""
    id: int
    name: str
    category: str
    price: float
    unit: str
    image: str
    description: Optional[str] = None
    in_stock: bool
    stock_quantity: int
    supplier: str
    origin: str
    nutrition_info: str
    storage_instructions: str
    popularity: int
    stars: int
    tags: list[str]
