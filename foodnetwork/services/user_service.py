from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
import logging

from foodnetwork.models.user import User, UserRole
from foodnetwork.schemas.user import UserCreate
from foodnetwork.services.exceptions import EmailTakenError

logger = logging.getLogger(__name__)


class UserService:
    """Service class for member accounts."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, user_data: UserCreate, role: UserRole = UserRole.MEMBER) -> User:
        """
        Create an account with a hashed password.

        Raises:
            EmailTakenError: If the email is already registered
        """
        email = user_data.email.lower()
        if self.get_by_email(email):
            raise EmailTakenError(f"Email {email} is already registered")

        user = User(name=user_data.name, email=email, role=role)
        user.set_password(user_data.password)

        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise EmailTakenError(f"Email {email} is already registered")

        self.db.refresh(user)
        logger.info(f"User #{user.id} registered as {role.value}")
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()
