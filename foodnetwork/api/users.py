from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from foodnetwork.api.deps import get_current_user
from foodnetwork.database import get_db
from foodnetwork.schemas.user import AuthContext, UserCreate, UserResponse
from foodnetwork.services.exceptions import EmailTakenError
from foodnetwork.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member"
)
def register_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """Create a member account. Admin accounts are created by the seed script."""
    service = UserService(db)

    try:
        return service.register(user_data)
    except EmailTakenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user"
)
def read_current_user(
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return UserService(db).get_by_id(current_user.user_id)
