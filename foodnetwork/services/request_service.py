from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional, List, Tuple
import logging

from foodnetwork.models.product_request import ProductRequest, RequestSupport, RequestStatus
from foodnetwork.schemas.product_request import (
    ProductRequestCreate,
    ProductRequestUpdate,
    ProductRequestWithProgress,
    SupporterResponse,
)
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import (
    DuplicateSupportError,
    InvalidStatusTransitionError,
    RequestNotFoundError,
)

logger = logging.getLogger(__name__)

# Status changes an admin may make. Nothing moves a request automatically.
ALLOWED_TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.FULFILLED},
    RequestStatus.APPROVED: {RequestStatus.FULFILLED, RequestStatus.REJECTED},
    RequestStatus.REJECTED: {RequestStatus.PENDING},
    RequestStatus.FULFILLED: set(),
}


def compute_progress(amount_wanted: Optional[float], supporter_count: int, goal: Optional[int]) -> dict:
    """
    Demand totals for a request.

    Each supporter is counted as wanting the same amount as the requester.
    Without a goal there is nothing to measure against, so progress and
    remaining are both 0.
    """
    amount = amount_wanted or 0
    total_requested = amount + supporter_count * amount

    if goal:
        progress_percentage = min(100.0, total_requested * 100 / goal)
        remaining_needed = max(0, goal - total_requested)
    else:
        progress_percentage = 0
        remaining_needed = 0

    return {
        "total_requested": total_requested,
        "progress_percentage": progress_percentage,
        "remaining_needed": remaining_needed,
    }


class RequestService:
    """
    Service class for product requests and the supports behind them.

    A request starts as pending with no goal. Admins set the goal and notes
    and move the status; reaching the goal never changes the status on its
    own.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_request(self, request_data: ProductRequestCreate, actor: AuthContext) -> ProductRequest:
        """Create a pending request owned by the caller."""
        product_request = ProductRequest(
            user_id=actor.user_id,
            status=RequestStatus.PENDING,
            **request_data.model_dump()
        )

        try:
            self.db.add(product_request)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating request '{request_data.product_name}': {e}")
            raise

        self.db.refresh(product_request)
        logger.info(f"Request #{product_request.id} '{product_request.product_name}' created by user #{actor.user_id}")
        return product_request

    def get_request(self, request_id: int) -> ProductRequest:
        """
        Get a request by ID.

        Raises:
            RequestNotFoundError: If the request doesn't exist
        """
        product_request = self.db.query(ProductRequest).filter(ProductRequest.id == request_id).first()
        if not product_request:
            raise RequestNotFoundError(f"Request with ID {request_id} not found")
        return product_request

    def get_request_with_progress(self, request_id: int) -> ProductRequestWithProgress:
        product_request = (
            self._with_relations(self.db.query(ProductRequest))
            .filter(ProductRequest.id == request_id)
            .first()
        )
        if not product_request:
            raise RequestNotFoundError(f"Request with ID {request_id} not found")
        return self._with_progress(product_request)

    def list_requests_with_progress(self, status: RequestStatus = None) -> List[ProductRequestWithProgress]:
        """
        Get all requests, newest first, each with its supporters and progress.

        Args:
            status: Optional status filter
        """
        query = self._with_relations(self.db.query(ProductRequest))
        if status:
            query = query.filter(ProductRequest.status == status)

        requests = query.order_by(ProductRequest.created_at.desc(), ProductRequest.id.desc()).all()
        return [self._with_progress(r) for r in requests]

    def support_request(self, request_id: int, actor: AuthContext) -> Tuple[RequestSupport, bool]:
        """
        Record the caller's support for a request.

        The existing-support check gives a clear error in the common case;
        the unique constraint settles two simultaneous calls.

        Returns:
            Tuple of (created support, whether this support made the request reach its goal)

        Raises:
            RequestNotFoundError: If the request doesn't exist
            DuplicateSupportError: If the caller already supports the request
        """
        product_request = self.get_request(request_id)

        existing = (
            self.db.query(RequestSupport)
            .filter(RequestSupport.user_id == actor.user_id, RequestSupport.request_id == request_id)
            .first()
        )
        if existing:
            raise DuplicateSupportError("Already supported this request")

        supporters_before = (
            self.db.query(RequestSupport).filter(RequestSupport.request_id == request_id).count()
        )

        support = RequestSupport(user_id=actor.user_id, request_id=request_id)
        try:
            self.db.add(support)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateSupportError("Already supported this request")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding support to request #{request_id}: {e}")
            raise

        self.db.refresh(support)

        before = compute_progress(product_request.amount_wanted, supporters_before, product_request.goal)
        after = compute_progress(product_request.amount_wanted, supporters_before + 1, product_request.goal)
        reached_goal = bool(product_request.goal) and before["remaining_needed"] > 0 and after["remaining_needed"] == 0

        logger.info(f"User #{actor.user_id} supports request #{request_id}")
        return support, reached_goal

    def remove_support(self, request_id: int, actor: AuthContext) -> bool:
        """
        Withdraw the caller's support. Removing a support that doesn't exist is a no-op.

        Returns:
            True if a support was removed
        """
        try:
            deleted = (
                self.db.query(RequestSupport)
                .filter(RequestSupport.user_id == actor.user_id, RequestSupport.request_id == request_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error removing support from request #{request_id}: {e}")
            raise

        if deleted:
            logger.info(f"User #{actor.user_id} withdrew support from request #{request_id}")
        return bool(deleted)

    def update_request(
        self,
        request_id: int,
        update_data: ProductRequestUpdate,
        actor: AuthContext
    ) -> ProductRequest:
        """
        Apply an admin update. Only the provided fields change.

        Raises:
            RequestNotFoundError: If the request doesn't exist
            InvalidStatusTransitionError: If the status change isn't allowed
        """
        product_request = self.get_request(request_id)
        changes = update_data.model_dump(exclude_unset=True)

        new_status = changes.get("status")
        if new_status is not None and new_status != product_request.status:
            if new_status not in ALLOWED_TRANSITIONS[product_request.status]:
                raise InvalidStatusTransitionError(
                    f"Cannot change request status from '{product_request.status.value}' "
                    f"to '{new_status.value}'"
                )

        for field, value in changes.items():
            if field in ("status", "goal") and value is None:
                continue
            setattr(product_request, field, value)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating request #{request_id}: {e}")
            raise

        self.db.refresh(product_request)
        logger.info(f"Request #{request_id} updated by admin #{actor.user_id}: {sorted(changes)}")
        return product_request

    def set_goal_and_notes(self, request_id: int, goal: int, admin_notes: str, actor: AuthContext) -> ProductRequest:
        return self.update_request(
            request_id, ProductRequestUpdate(goal=goal, admin_notes=admin_notes), actor
        )

    def update_status(self, request_id: int, status: RequestStatus, actor: AuthContext) -> ProductRequest:
        return self.update_request(request_id, ProductRequestUpdate(status=status), actor)

    def delete_request(self, request_id: int, actor: AuthContext) -> None:
        """Delete a request and every support attached to it."""
        product_request = self.get_request(request_id)

        try:
            self.db.delete(product_request)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting request #{request_id}: {e}")
            raise

        logger.info(f"Request #{request_id} deleted by admin #{actor.user_id}")

    @staticmethod
    def _with_relations(query):
        return query.options(
            joinedload(ProductRequest.user),
            selectinload(ProductRequest.supports).joinedload(RequestSupport.user),
        )

    @staticmethod
    def _with_progress(product_request: ProductRequest) -> ProductRequestWithProgress:
        supporters = [
            SupporterResponse(
                user_id=s.user_id,
                name=s.user.name,
                email=s.user.email,
                created_at=s.created_at,
            )
            for s in product_request.supports
        ]
        progress = compute_progress(product_request.amount_wanted, len(supporters), product_request.goal)

        data = ProductRequestWithProgress.model_validate(product_request)
        return data.model_copy(update={
            "requester_name": product_request.user.name if product_request.user else None,
            "requester_email": product_request.user.email if product_request.user else None,
            "supporters": supporters,
            "supporter_count": len(supporters),
            **progress,
        })
