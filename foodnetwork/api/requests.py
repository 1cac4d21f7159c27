from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from foodnetwork.api.deps import get_current_user, require_admin
from foodnetwork.database import get_db
from foodnetwork.models.product_request import RequestStatus
from foodnetwork.schemas.product_request import (
    ProductRequestCreate,
    ProductRequestUpdate,
    ProductRequestResponse,
    ProductRequestWithProgress,
    SupportResponse,
)
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.exceptions import BusinessRuleViolation, RequestNotFoundError
from foodnetwork.services.request_service import RequestService
from foodnetwork.tasks.notification_tasks import dispatch, notify_request_goal_reached

router = APIRouter(prefix="/requests", tags=["Product Requests"])


@router.get(
    "/",
    response_model=list[ProductRequestWithProgress],
    summary="List product requests",
    description="All requests, newest first, with requester, supporters and progress towards the goal."
)
def list_requests(
    status: Optional[RequestStatus] = Query(None, description="Filter by request status"),
    db: Session = Depends(get_db)
):
    """
    List requests with progress.

    - **total_requested**: requester's amount plus the same amount per supporter
    - **progress_percentage**: total_requested / goal, capped at 100
    - **remaining_needed**: what is still missing to reach the goal
    """
    service = RequestService(db)
    return service.list_requests_with_progress(status)


@router.post(
    "/",
    response_model=ProductRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a new product",
    description="Ask the network to stock a new product. The request starts as pending without a goal."
)
def create_request(
    request_data: ProductRequestCreate,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = RequestService(db)
    return service.create_request(request_data, current_user)


@router.get(
    "/{request_id}",
    response_model=ProductRequestWithProgress,
    summary="Get product request by ID"
)
def get_request(
    request_id: int,
    db: Session = Depends(get_db)
):
    service = RequestService(db)

    try:
        return service.get_request_with_progress(request_id)
    except RequestNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch(
    "/{request_id}",
    response_model=ProductRequestResponse,
    summary="Review a product request",
    description="Set the status, goal and/or admin notes of a request. Admin only."
)
def update_request(
    request_id: int,
    update_data: ProductRequestUpdate,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Update a request. Only the provided fields change.

    Reaching the goal does not approve a request; status changes are
    always made here.
    """
    service = RequestService(db)

    try:
        return service.update_request(request_id, update_data, current_user)
    except RequestNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BusinessRuleViolation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete(
    "/{request_id}",
    summary="Delete a product request",
    description="Delete a request and all of its supports. Admin only."
)
def delete_request(
    request_id: int,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = RequestService(db)

    try:
        service.delete_request(request_id, current_user)
    except RequestNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {"message": "Request deleted successfully"}


@router.post(
    "/{request_id}/support",
    response_model=SupportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Support a product request"
)
def support_request(
    request_id: int,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add the caller's support. Each member can support a request once."""
    service = RequestService(db)

    try:
        support, reached_goal = service.support_request(request_id, current_user)
    except RequestNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BusinessRuleViolation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if reached_goal:
        dispatch(notify_request_goal_reached, request_id)

    return support


@router.delete(
    "/{request_id}/support",
    summary="Withdraw support",
    description="Remove the caller's support. Succeeds even if there was none."
)
def remove_support(
    request_id: int,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = RequestService(db)
    service.remove_support(request_id, current_user)
    return {"message": "Support removed successfully"}
