from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional

from foodnetwork.database import get_db
from foodnetwork.schemas.user import AuthContext
from foodnetwork.services.user_service import UserService


def get_current_user(
    x_user_id: Optional[str] = Header(None, description="Authenticated user ID set by the auth layer"),
    db: Session = Depends(get_db)
) -> AuthContext:
    """
    Resolve the caller from the session header.

    Sessions are issued upstream; this only checks that the id belongs to
    a known user and loads the role from the database.
    """
    try:
        user_id = int(x_user_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    user = UserService(db).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    return AuthContext(user_id=user.id, role=user.role)


def require_admin(current_user: AuthContext = Depends(get_current_user)) -> AuthContext:
    """Allow only admins through."""
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return current_user
