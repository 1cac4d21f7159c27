from pydantic import BaseModel, Field, ConfigDict, EmailStr
from datetime import datetime

from foodnetwork.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for registering a member."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class UserResponse(BaseModel):
    """Public view of a user."""
    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthContext(BaseModel):
    """Identity of the caller, passed explicitly into service operations."""
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
