from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
import logging
from app.models.user import User
from ..repositories.userRepository import UserRepository
from .household_service import HouseholdService
from ..schemas.user import UserCreate
from ..utils.security import get_password_hash, verify_password, dummy_verify_password
from ..core.exception import (
    ResourceNotFoundException,
    DuplicateResourceException,
    BadRequestException,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user operations."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.user_repo.get(user_id)

    def create_user(self, user_data: UserCreate) -> User:
        """
        Create a new user.

        Validates that username and email are unique. A registration that
        passes the checks but loses the insert to a concurrent one hits the
        unique constraints and is reported the same way.
        Hashes the password before storing.
        """
        if self.user_repo.username_exists(user_data.username):
            raise DuplicateResourceException("User", user_data.username)

        if self.user_repo.email_exists(user_data.email):
            raise DuplicateResourceException("User", user_data.email)

        user = User(
            email=user_data.email,
            username=user_data.username,
            hashed_password=get_password_hash(user_data.password),
        )

        try:
            self.user_repo.add(user)
        except IntegrityError:
            self.db.rollback()
            raise DuplicateResourceException("User")
        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """
        Authenticate a user by username and password.

        Returns User if credentials are valid, None otherwise. Unknown
        usernames still pay for one hash verification.
        """
        user = self.user_repo.get_by_username(username)

        if not user:
            dummy_verify_password()
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    def change_password(
        self, user_id: int, old_password: str, new_password: str
    ) -> User:
        """Change user password."""
        user = self.user_repo.get(user_id)

        if not user:
            raise ResourceNotFoundException("User", user_id)

        if not verify_password(old_password, user.hashed_password):
            raise BadRequestException("Old password is incorrect")

        self.user_repo.update_password(user, get_password_hash(new_password))
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int) -> None:
        """
        Delete a user account.

        Bills, refresh tokens, reset tokens and sent invitations go with the
        user. A household left without members is dissolved in the same
        transaction.
        """

        user = self.user_repo.get(user_id)
        if not user:
            raise ResourceNotFoundException("User", user_id)

        if user.household_id is not None:
            HouseholdService(self.db).detach_member(user.household_id, user.id)

        self.user_repo.delete(user)
        self.db.commit()
        logger.info("Deleted user %s", user_id)
