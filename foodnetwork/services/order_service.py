from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from decimal import Decimal
from typing import List, Tuple
import math
import logging

from foodnetwork.models.product import Product, MovementType
from foodnetwork.models.order import Order, OrderStatus
from foodnetwork.schemas.order import OrderCreate
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import (
    InsufficientStockError,
    NegativeStockError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from foodnetwork.services.stock_ledger import StockLedger
from foodnetwork.utils.cache import cache_service

logger = logging.getLogger(__name__)


class OrderService:
    """
    Service class for placing and reading orders.

    RACE CONDITION HANDLING STRATEGY:
    =================================
    Placing an order is one transaction with three writes:

    1. Decrement the product stock (conditional UPDATE in the StockLedger)
    2. Insert the purchase movement
    3. Insert the order with the snapshotted unit price

    The product row is read FOR UPDATE first (PostgreSQL row lock), so the
    price snapshot and the stock check see the same row state. The
    decrement itself only matches while current_stock >= quantity, so when
    two members race for the last units the second UPDATE matches no row
    and the whole transaction rolls back with InsufficientStockError.
    """

    def __init__(self, db: Session):
        self.db = db
        self.ledger = StockLedger(db)

    def place_order(self, order_data: OrderCreate, actor: AuthContext) -> Order:
        """
        Place an order with atomic stock reservation.

        Args:
            order_data: Order creation data with product_id and quantity
            actor: Member placing the order

        Returns:
            Created order instance

        Raises:
            ProductNotFoundError: If product doesn't exist
            InsufficientStockError: If not enough stock available
        """
        product_id = order_data.product_id
        quantity = order_data.quantity

        try:
            product = (
                self.db.query(Product)
                .filter(Product.id == product_id)
                .with_for_update()
                .first()
            )

            if not product:
                raise ProductNotFoundError(f"Product with ID {product_id} not found")

            if product.current_stock < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock. Available: {product.current_stock}, Requested: {quantity}"
                )

            unit_price = Decimal(product.unit_price)
            total_price = unit_price * quantity

            self.ledger.adjust_stock(
                product_id,
                -quantity,
                actor,
                reason=f"Order purchase - {quantity} units",
                movement_type=MovementType.PURCHASE,
                commit=False,
            )

            order = Order(
                user_id=actor.user_id,
                product_id=product_id,
                quantity=quantity,
                unit_price=unit_price,
                total_price=total_price,
                status=OrderStatus.CONFIRMED
            )

            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)

        except (ProductNotFoundError, InsufficientStockError):
            self.db.rollback()
            raise
        except NegativeStockError as e:
            # Stock moved between the read and the decrement
            self.db.rollback()
            raise InsufficientStockError(str(e))
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error creating order: {e}")
            raise InsufficientStockError("Stock constraint violated - concurrent modification detected")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating order: {e}")
            raise

        # Invalidate product cache since stock changed
        cache_service.delete("product", str(product_id))

        logger.info(
            f"Order #{order.id} placed by user #{actor.user_id} "
            f"for {quantity} x product #{product_id}"
        )
        return order

    def get_order(self, order_id: int, actor: AuthContext) -> Order:
        """
        Get an order by ID. Members only see their own orders.

        Raises:
            OrderNotFoundError: If the order doesn't exist or isn't visible to the caller
        """
        query = (
            self.db.query(Order)
            .options(joinedload(Order.product), joinedload(Order.user))
            .filter(Order.id == order_id)
        )
        if not actor.is_admin:
            query = query.filter(Order.user_id == actor.user_id)

        order = query.first()
        if not order:
            raise OrderNotFoundError(f"Order with ID {order_id} not found")
        return order

    def get_orders(
        self,
        actor: AuthContext,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Order], int, int]:
        """
        Get paginated list of orders, newest first.

        Admins see every order; members see only their own.

        Args:
            actor: Caller
            page: Page number
            page_size: Items per page

        Returns:
            Tuple of (orders list, total count, total pages)
        """
        query = self.db.query(Order)

        if not actor.is_admin:
            query = query.filter(Order.user_id == actor.user_id)

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        orders = (
            query.options(joinedload(Order.product), joinedload(Order.user))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )

        return orders, total, total_pages
