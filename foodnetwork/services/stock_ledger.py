from sqlalchemy.orm import Session
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional, List
import logging

from foodnetwork.models.product import Product, ProductMovement, MovementType
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import (
    ProductNotFoundError,
    NegativeStockError,
    ValidationFailedError,
)
from foodnetwork.utils.cache import cache_service

logger = logging.getLogger(__name__)


class StockLedger:
    """
    Applies stock changes and keeps the movement audit trail.

    STOCK CHANGE STRATEGY:
    ======================
    Every change is a single conditional UPDATE:

        UPDATE products SET current_stock = current_stock + :delta
        WHERE id = :product_id AND current_stock + :delta >= 0

    The check and the write happen in one statement, so two concurrent
    decrements can never both pass the check against the same stock. If the
    UPDATE matches no row, either the product is gone or the stock would go
    negative. The CHECK constraint on products.current_stock backs this up.

    Each change inserts exactly one ProductMovement in the same transaction.
    Callers that need to add their own writes to that transaction (orders,
    product edits) pass commit=False and commit themselves.
    """

    def __init__(self, db: Session):
        self.db = db

    def adjust_stock(
        self,
        product_id: int,
        delta: int,
        actor: AuthContext,
        reason: Optional[str] = None,
        movement_type: Optional[MovementType] = None,
        commit: bool = True,
    ) -> Product:
        """
        Change a product's stock by delta and record the movement.

        Args:
            product_id: Product to adjust
            delta: Signed change in units (non-zero)
            actor: Caller the movement is attributed to
            reason: Note stored on the movement
            movement_type: Overrides the type derived from the sign of delta
            commit: Commit the transaction when done

        Returns:
            The updated product

        Raises:
            ValidationFailedError: If delta is zero
            ProductNotFoundError: If product doesn't exist
            NegativeStockError: If the resulting stock would be negative
        """
        if delta == 0:
            raise ValidationFailedError("Stock delta must not be zero")

        if movement_type is None:
            movement_type = MovementType.STOCK_ADDED if delta > 0 else MovementType.STOCK_REMOVED

        try:
            result = self.db.execute(
                update(Product)
                .where(Product.id == product_id)
                .where(Product.current_stock + delta >= 0)
                .values(current_stock=Product.current_stock + delta)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                product = self.db.get(Product, product_id, populate_existing=True)
                if product is None:
                    raise ProductNotFoundError(f"Product with ID {product_id} not found")
                raise NegativeStockError(
                    f"Insufficient stock. Available: {product.current_stock}, "
                    f"Requested change: {delta}"
                )

            self.record_movement(product_id, movement_type, abs(delta), actor, notes=reason)

            if commit:
                self.db.commit()
            else:
                self.db.flush()

        except (ProductNotFoundError, NegativeStockError):
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error adjusting stock of product #{product_id}: {e}")
            raise NegativeStockError("Stock constraint violated - concurrent modification detected")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adjusting stock of product #{product_id}: {e}")
            raise

        product = self.db.get(Product, product_id)
        self.db.refresh(product)
        if commit:
            cache_service.delete("product", str(product_id))

        logger.info(
            f"Stock of product #{product_id} changed by {delta:+d} "
            f"({movement_type.value}) by user #{actor.user_id}"
        )
        return product

    def record_movement(
        self,
        product_id: int,
        movement_type: MovementType,
        quantity: int,
        actor: AuthContext,
        notes: Optional[str] = None,
    ) -> ProductMovement:
        """
        Append a movement for a stock change the caller has already applied.

        The movement joins the caller's transaction; nothing is committed here.
        """
        movement = ProductMovement(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            user_id=actor.user_id,
            notes=notes,
        )
        self.db.add(movement)
        return movement

    def get_movements(self, product_id: int) -> List[ProductMovement]:
        """Get a product's movements, newest first."""
        if self.db.get(Product, product_id) is None:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        return (
            self.db.query(ProductMovement)
            .filter(ProductMovement.product_id == product_id)
            .order_by(ProductMovement.created_at.desc(), ProductMovement.id.desc())
            .all()
        )
