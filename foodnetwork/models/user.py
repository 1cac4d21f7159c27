from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
import enum

from foodnetwork.database import Base


class UserRole(str, enum.Enum):
    """Enum for user roles."""
    MEMBER = "member"
    ADMIN = "admin"


class User(Base):
    """
    Community member (or administrator) of the food network.

    Attributes:
        id: Unique identifier for the user
        email: Login email, unique across users
        name: Display name
        password_hash: Werkzeug password hash
        role: Member or admin
        created_at: Timestamp when the user registered
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.MEMBER, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
