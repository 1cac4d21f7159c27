from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from foodnetwork.api.deps import get_current_user
from foodnetwork.database import get_db
from foodnetwork.models.order import Order
from foodnetwork.schemas.order import (
    OrderCreate,
    OrderResponse,
    OrderWithProduct,
    OrderListResponse
)
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import (
    InsufficientStockError,
    OrderNotFoundError,
    ProductNotFoundError
)
from foodnetwork.services.order_service import OrderService
from foodnetwork.tasks.notification_tasks import dispatch, send_order_confirmation

router = APIRouter(prefix="/orders", tags=["Orders"])


def _order_view(order: Order, include_buyer: bool) -> OrderWithProduct:
    view = OrderWithProduct.model_validate(order)
    view.product_name = order.product.name if order.product else None
    if include_buyer and order.user:
        view.user_name = order.user.name
        view.user_email = order.user.email
    return view


@router.post(
    "/",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="""
    Buy units of a product.

    **Atomicity:**
    The order, the stock decrement and the purchase movement are written in
    one transaction. When several members try to buy the last units at once:
    - Only one transaction succeeds
    - Others receive a 400 error with 'Insufficient stock' message
    """
)
def place_order(
    order_data: OrderCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Place an order.

    - **product_id**: ID of the product to purchase (required)
    - **quantity**: Number of units to buy, at least 1 (required)

    The unit price is copied into the order; later price changes don't
    affect it.
    """
    service = OrderService(db)

    try:
        order = service.place_order(order_data, current_user)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except InsufficientStockError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    dispatch(send_order_confirmation, order.id)
    return order


@router.get(
    "/",
    response_model=OrderListResponse,
    summary="List orders",
    description="Newest first. Admins see all orders, members only their own."
)
def list_orders(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get paginated list of orders."""
    service = OrderService(db)
    orders, total, total_pages = service.get_orders(current_user, page, page_size)

    return OrderListResponse(
        items=[_order_view(o, current_user.is_admin) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/{order_id}",
    response_model=OrderWithProduct,
    summary="Get order by ID",
    description="Get a specific order. Members can only read their own orders."
)
def get_order(
    order_id: int,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get an order by ID."""
    service = OrderService(db)

    try:
        order = service.get_order(order_id, current_user)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return _order_view(order, current_user.is_admin)
