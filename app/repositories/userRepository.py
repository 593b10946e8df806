from sqlalchemy.orm import Session
from sqlalchemy import update, func
from typing import Optional
from app.models.user import User
from ..repositories.repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        return (
            self.db.query(User)
            .filter(func.lower(User.email) == email.strip().lower())
            .first()
        )

    def username_exists(self, username: str) -> bool:
        """Check if username already exists."""
        return self.db.query(User).filter(User.username == username).count() > 0

    def email_exists(self, email: str) -> bool:
        """Check if email already exists."""
        return self.get_by_email(email) is not None

    def update_password(self, user: User, hashed_password: str) -> User:
        """Replace the stored password hash."""
        user.hashed_password = hashed_password
        self.db.flush()
        return user

    def join_household(self, user_id: int, household_id: int) -> bool:
        """
        Attach a user to a household only while they are unaffiliated.

        Returns:
            False if the user already belongs to a household
        """
        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.household_id.is_(None))
            .values(household_id=household_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def leave_household(self, user_id: int) -> None:
        """Clear a user's household reference."""
        self.db.execute(
            update(User).where(User.id == user_id).values(household_id=None)
        )

    def detach_all_from_household(self, household_id: int) -> None:
        """Clear the household reference of every member."""
        self.db.execute(
            update(User)
            .where(User.household_id == household_id)
            .values(household_id=None)
        )

    def count_household_members(self, household_id: int) -> int:
        """Number of users currently referencing the household."""
        return (
            self.db.query(User).filter(User.household_id == household_id).count()
        )
