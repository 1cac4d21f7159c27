from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from foodnetwork.api.deps import require_admin
from foodnetwork.database import get_db
from foodnetwork.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    StockAdjustment,
    MovementResponse,
    InventoryItem,
)
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import (
    BusinessRuleViolation,
    ProductNotFoundError,
    ValidationFailedError,
)
from foodnetwork.services.product_service import ProductService
from foodnetwork.services.stock_ledger import StockLedger
from foodnetwork.utils.presentation import to_inventory_item

router = APIRouter(prefix="/products", tags=["Products"])


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a product and record its initial stock. Admin only."
)
def create_product(
    product_data: ProductCreate,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **name**: Product name (required)
    - **unit_price**: Price per unit, must be positive (required)
    - **current_stock**: Initial stock, must be non-negative (default 0)
    """
    service = ProductService(db)
    return service.create(product_data, current_user)


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List all products",
    description="Get a paginated list of products, newest first, with optional search and category filter."
)
def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search by product name"),
    category: Optional[str] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db)
):
    """Get paginated list of products."""
    service = ProductService(db)
    products, total, total_pages = service.get_all(page, page_size, search, category)

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/inventory",
    response_model=list[InventoryItem],
    summary="Storefront inventory",
    description="All products in the storefront format (category emoji, popularity, stars, tags)."
)
def list_inventory(db: Session = Depends(get_db)):
    service = ProductService(db)
    return [to_inventory_item(p) for p in service.list_all()]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get detailed information about a specific product. Results are cached in Redis."
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """
    Get a product by ID.

    Served from the Redis cache when possible; cache entries are dropped
    whenever the product or its stock changes.
    """
    service = ProductService(db)
    product = service.get_by_id_cached(product_id)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return product


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Update product details. Only provided fields will be updated. Admin only."
)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Update a product.

    Changing current_stock records a stock_added / stock_removed movement
    for the difference.
    """
    service = ProductService(db)

    try:
        return service.update(product_id, product_data, current_user)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete(
    "/{product_id}",
    summary="Delete a product",
    description="Delete a product and its movement history. Refused while orders reference it. Admin only."
)
def delete_product(
    product_id: int,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a product."""
    service = ProductService(db)

    try:
        service.delete(product_id, current_user)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BusinessRuleViolation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": "Product deleted successfully"}


@router.post(
    "/{product_id}/stock",
    response_model=ProductResponse,
    summary="Adjust stock",
    description="Add or remove stock with an audit movement. Admin only."
)
def adjust_stock(
    product_id: int,
    adjustment: StockAdjustment,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    ledger = StockLedger(db)

    try:
        return ledger.adjust_stock(product_id, adjustment.delta, current_user, adjustment.reason)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ValidationFailedError, BusinessRuleViolation) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/{product_id}/movements",
    response_model=list[MovementResponse],
    summary="Stock movement history",
    description="Audit trail of a product's stock changes, newest first. Admin only."
)
def list_movements(
    product_id: int,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    ledger = StockLedger(db)

    try:
        return ledger.get_movements(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
