from sqlalchemy import (
    Column, Integer, String, Text, Float, DateTime, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from foodnetwork.database import Base


class RequestStatus(str, enum.Enum):
    """Enum for product request status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


class ProductRequest(Base):
    """
    A member's request for the network to start stocking a new product.

    Attributes:
        id: Unique identifier for the request
        user_id: Requesting member
        product_name: Name of the wanted product
        description: What exactly is wanted
        price_range: Acceptable price range, free text
        estimated_price: Requester's price estimate
        supplier_suggestion: Where the product could be sourced
        amount_wanted: Quantity the requester wants
        goal: Demand threshold set by an admin (unset until reviewed)
        admin_notes: Notes from the reviewing admin
        status: Review status
        created_at: Timestamp when the request was made
        updated_at: Timestamp when the request was last changed
    """
    __tablename__ = "product_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price_range = Column(String(100), nullable=True)
    estimated_price = Column(Float, nullable=True)
    supplier_suggestion = Column(String(255), nullable=True)
    amount_wanted = Column(Float, nullable=True)
    goal = Column(Integer, nullable=True)
    admin_notes = Column(Text, nullable=True)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User")
    supports = relationship(
        "RequestSupport",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestSupport.id",
    )

    def __repr__(self):
        return f"<ProductRequest(id={self.id}, product_name='{self.product_name}', status='{self.status}')>"


class RequestSupport(Base):
    """A member backing someone's product request. One row per (user, request)."""
    __tablename__ = "request_supports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    request_id = Column(
        Integer,
        ForeignKey("product_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    request = relationship("ProductRequest", back_populates="supports")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('user_id', 'request_id', name='uq_request_support_user_request'),
    )

    def __repr__(self):
        return f"<RequestSupport(user_id={self.user_id}, request_id={self.request_id})>"
