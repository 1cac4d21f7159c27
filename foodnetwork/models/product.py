from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Enum,
    CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from foodnetwork.database import Base


class MovementType(str, enum.Enum):
    """Enum for the cause of a stock movement."""
    STOCK_ADDED = "stock_added"
    STOCK_REMOVED = "stock_removed"
    PURCHASE = "purchase"


class Product(Base):
    """
    Product model representing a bulk item the network stocks.

    Attributes:
        id: Unique identifier for the product
        name: Product name
        description: Free-text description
        category: Category slug (e.g. 'grains', 'nuts')
        unit_price: Price per unit (must be positive)
        current_stock: Units on hand (must be non-negative)
        units_per_case: Units in one supplier case
        unit_size: Human readable size of one unit (e.g. '25 lb bag')
        total_units: Units bought in for the current batch
        sold_units: Units of the current batch already sold
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    unit_price = Column(Numeric(10, 2), nullable=False)
    current_stock = Column(Integer, nullable=False, default=0)
    units_per_case = Column(Integer, nullable=True)
    unit_size = Column(String(100), nullable=True)
    total_units = Column(Integer, nullable=True)
    sold_units = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    movements = relationship(
        "ProductMovement",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductMovement.id.desc()",
    )

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('unit_price > 0', name='check_unit_price_positive'),
        CheckConstraint('current_stock >= 0', name='check_current_stock_non_negative'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', current_stock={self.current_stock})>"


class ProductMovement(Base):
    """
    Append-only audit entry for a single stock change.

    The signed sum of a product's movements reconciles to its current stock.
    """
    __tablename__ = "product_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    movement_type = Column(Enum(MovementType), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product", back_populates="movements")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_movement_quantity_positive'),
        Index("ix_product_movements_product_created", product_id, created_at.desc()),
    )

    @property
    def signed_quantity(self) -> int:
        if self.movement_type == MovementType.STOCK_ADDED:
            return self.quantity
        return -self.quantity

    def __repr__(self):
        return (
            f"<ProductMovement(id={self.id}, product_id={self.product_id}, "
            f"type='{self.movement_type}', quantity={self.quantity})>"
        )
