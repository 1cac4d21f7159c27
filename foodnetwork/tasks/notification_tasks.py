import logging

from kombu.exceptions import OperationalError

from foodnetwork.tasks.celery_app import celery_app
from foodnetwork.database import SessionLocal
from foodnetwork.models.order import Order
from foodnetwork.models.product import Product  # noqa: F401 (mapper registry)
from foodnetwork.models.product_request import ProductRequest, RequestSupport  # noqa: F401
from foodnetwork.models.user import User, UserRole
from foodnetwork.services.request_service import compute_progress

logger = logging.getLogger(__name__)


@celery_app.task(name="send_order_confirmation")
def send_order_confirmation(order_id: int) -> dict:
    """
    Send the buyer a confirmation for a placed order.

    Reads the order only; confirmed orders are never modified.

    Args:
        order_id: ID of the order to confirm

    Returns:
        Dictionary with the notification result
    """
    db = SessionLocal()

    try:
        order = db.query(Order).filter(Order.id == order_id).first()

        if not order:
            logger.error(f"Order #{order_id} not found")
            return {"status": "failed", "error": "Order not found"}

        message = (
            f"Order #{order.id} confirmed: {order.quantity} x {order.product.name} "
            f"for {order.total_price}"
        )
        logger.info(f"Notifying {order.user.email}: {message}")

        return {
            "status": "sent",
            "order_id": order.id,
            "email": order.user.email,
            "message": message
        }
    finally:
        db.close()


@celery_app.task(name="notify_request_goal_reached")
def notify_request_goal_reached(request_id: int) -> dict:
    """
    Tell admins a product request has reached its goal.

    Approval stays a manual admin decision; the request status is untouched.

    Args:
        request_id: ID of the request that reached its goal

    Returns:
        Dictionary with the notification result
    """
    db = SessionLocal()

    try:
        product_request = db.query(ProductRequest).filter(ProductRequest.id == request_id).first()

        if not product_request:
            logger.error(f"Request #{request_id} not found")
            return {"status": "failed", "error": "Request not found"}

        progress = compute_progress(
            product_request.amount_wanted, len(product_request.supports), product_request.goal
        )
        admins = [u.email for u in db.query(User).filter(User.role == UserRole.ADMIN).all()]

        message = (
            f"Request #{product_request.id} '{product_request.product_name}' reached its goal "
            f"({progress['total_requested']} of {product_request.goal})"
        )
        logger.info(f"Notifying admins {admins}: {message}")

        return {
            "status": "sent",
            "request_id": product_request.id,
            "recipients": admins,
            "message": message
        }
    finally:
        db.close()


def dispatch(task, *args) -> None:
    """
    Queue a notification task.

    The operation that triggered it is already committed, so a broker outage
    is logged instead of failing the request.
    """
    try:
        task.delay(*args)
    except OperationalError as e:
        logger.error(f"Could not queue {task.name}{args}: {e}")
