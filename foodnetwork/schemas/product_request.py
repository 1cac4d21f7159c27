from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from foodnetwork.models.product_request import RequestStatus


class ProductRequestCreate(BaseModel):
    """Schema for requesting a new product."""
    product_name: str = Field(..., min_length=1, max_length=255, description="Name of the wanted product")
    description: Optional[str] = Field(None, description="What exactly is wanted")
    price_range: Optional[str] = Field(None, max_length=100, description="Acceptable price range")
    estimated_price: Optional[float] = Field(None, ge=0, description="Estimated price per unit")
    supplier_suggestion: Optional[str] = Field(None, max_length=255, description="Suggested supplier")
    amount_wanted: Optional[float] = Field(None, gt=0, description="Quantity the requester wants")


class ProductRequestUpdate(BaseModel):
    """Admin update of a request. Only provided fields are changed."""
    status: Optional[RequestStatus] = None
    goal: Optional[int] = Field(None, ge=1, description="Demand threshold for the request")
    admin_notes: Optional[str] = None


class ProductRequestResponse(BaseModel):
    """Schema for a stored product request."""
    id: int
    user_id: int
    product_name: str
    description: Optional[str] = None
    price_range: Optional[str] = None
    estimated_price: Optional[float] = None
    supplier_suggestion: Optional[str] = None
    amount_wanted: Optional[float] = None
    goal: Optional[int] = None
    admin_notes: Optional[str] = None
    status: RequestStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupporterResponse(BaseModel):
    """A member supporting a request."""
    user_id: int
    name: str
    email: str
    created_at: datetime


class SupportResponse(BaseModel):
    """Schema for a created support."""
    id: int
    user_id: int
    request_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductRequestWithProgress(ProductRequestResponse):
    """Request with requester, supporters and progress towards its goal."""
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    supporters: list[SupporterResponse] = []
    supporter_count: int = 0
    total_requested: float = 0
    progress_percentage: float = 0
    remaining_needed: float = 0
