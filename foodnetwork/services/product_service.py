from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional, List
import math
import logging

from foodnetwork.models.order import Order
from foodnetwork.models.product import Product, MovementType
from foodnetwork.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import ProductNotFoundError, ProductInUseError
from foodnetwork.services.stock_ledger import StockLedger
from foodnetwork.utils.cache import cache_service

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for Product CRUD operations.

    Stock is never written here without a matching movement: creation
    records the initial stock, and an edit that changes current_stock
    records the difference in the same transaction.
    """

    CACHE_PREFIX = "product"

    def __init__(self, db: Session):
        self.db = db
        self.ledger = StockLedger(db)

    def create(self, product_data: ProductCreate, actor: AuthContext) -> Product:
        """
        Create a new product and record its initial stock.

        Args:
            product_data: Product creation data
            actor: Admin creating the product

        Returns:
            Created product instance
        """
        product = Product(**product_data.model_dump())

        try:
            self.db.add(product)
            self.db.flush()

            if product.current_stock > 0:
                self.ledger.record_movement(
                    product.id,
                    MovementType.STOCK_ADDED,
                    product.current_stock,
                    actor,
                    notes="Initial stock",
                )

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating product '{product_data.name}': {e}")
            raise

        self.db.refresh(product)
        logger.info(f"Product #{product.id} '{product.name}' created by user #{actor.user_id}")
        return product

    def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get a product by ID."""
        return self.db.query(Product).filter(Product.id == product_id).first()

    def _get_for_update(self, product_id: int) -> Optional[Product]:
        """Get a product with its row locked, refreshing any copy already in the session."""
        return (
            self.db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_id_cached(self, product_id: int) -> Optional[dict]:
        """
        Get product details from cache or database.
        Returns a dictionary (suitable for API response).

        Args:
            product_id: Product ID to look up

        Returns:
            Product data as dictionary or None
        """
        cached = cache_service.get(self.CACHE_PREFIX, str(product_id))
        if cached:
            return cached

        product = self.get_by_id(product_id)

        if product:
            product_dict = ProductResponse.model_validate(product).model_dump(mode="json")
            cache_service.set(self.CACHE_PREFIX, str(product_id), product_dict)
            return product_dict

        return None

    def get_all(
        self,
        page: int = 1,
        page_size: int = 10,
        search: str = None,
        category: str = None
    ) -> tuple[List[Product], int, int]:
        """
        Get paginated list of products, newest first.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page
            search: Optional search term for product name
            category: Optional category filter

        Returns:
            Tuple of (products list, total count, total pages)
        """
        query = self.db.query(Product)

        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        if category:
            query = query.filter(Product.category.ilike(category))

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        products = (
            query.order_by(Product.created_at.desc(), Product.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )

        return products, total, total_pages

    def list_all(self) -> List[Product]:
        """Get every product, newest first."""
        return self.db.query(Product).order_by(Product.created_at.desc(), Product.id.desc()).all()

    def update(self, product_id: int, product_data: ProductUpdate, actor: AuthContext) -> Product:
        """
        Update an existing product.

        If current_stock changes, a stock_added / stock_removed movement for
        the difference is written in the same transaction. The row is read
        FOR UPDATE, so the difference is taken against the stock left by any
        order committed in the meantime.

        Args:
            product_id: ID of product to update
            product_data: Update data (only provided, non-None fields are updated)
            actor: Admin editing the product

        Returns:
            Updated product

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        product = self._get_for_update(product_id)

        if not product:
            self.db.rollback()
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        previous_stock = product.current_stock

        update_data = product_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is not None:
                setattr(product, field, value)

        stock_diff = product.current_stock - previous_stock

        try:
            if stock_diff != 0:
                self.ledger.record_movement(
                    product.id,
                    MovementType.STOCK_ADDED if stock_diff > 0 else MovementType.STOCK_REMOVED,
                    abs(stock_diff),
                    actor,
                    notes="Stock updated via product edit",
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating product #{product_id}: {e}")
            raise

        self.db.refresh(product)
        self._invalidate_cache(product_id)

        logger.info(f"Product #{product_id} updated by user #{actor.user_id} (stock {stock_diff:+d})")
        return product

    def delete(self, product_id: int, actor: AuthContext) -> None:
        """
        Delete a product together with its movement history.

        Raises:
            ProductNotFoundError: If product doesn't exist
            ProductInUseError: If orders still reference the product
        """
        product = self._get_for_update(product_id)

        if not product:
            self.db.rollback()
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        order_count = self.db.query(Order).filter(Order.product_id == product_id).count()
        if order_count:
            self.db.rollback()
            raise ProductInUseError(
                f"Product with ID {product_id} has {order_count} order(s) and cannot be deleted"
            )

        try:
            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting product #{product_id}: {e}")
            raise

        self._invalidate_cache(product_id)
        logger.info(f"Product #{product_id} deleted by user #{actor.user_id}")

    def _invalidate_cache(self, product_id: int) -> None:
        """Invalidate cache for a product."""
        cache_service.delete(self.CACHE_PREFIX, str(product_id))
