from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from foodnetwork.database import Base


class OrderStatus(str, enum.Enum):
    """Enum for order status."""
    CONFIRMED = "confirmed"


class Order(Base):
    """
    Order model representing a member's purchase.

    Orders are immutable once placed; the unit price is a snapshot of the
    product price at the time of purchase.

    Attributes:
        id: Unique identifier for the order
        user_id: Member who placed the order
        product_id: Reference to the purchased product
        quantity: Number of units purchased
        unit_price: Product price when the order was placed
        total_price: unit_price * quantity
        status: Current status of the order
        created_at: Timestamp when order was created
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(OrderStatus), default=OrderStatus.CONFIRMED, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product", backref="orders")
    user = relationship("User", backref="orders")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_order_quantity_positive'),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, product_id={self.product_id}, status='{self.status}')>"
