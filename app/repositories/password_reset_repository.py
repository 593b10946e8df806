from sqlalchemy.orm import Session
from sqlalchemy import update
from datetime import datetime
from typing import Optional
from app.models.password_reset_token import PasswordResetToken
from app.repositories.repository import BaseRepository


class PasswordResetRepository(BaseRepository[PasswordResetToken]):
    """Repository for password reset tokens."""

    def __init__(self, db: Session):
        super().__init__(PasswordResetToken, db)

    def get_active(self, user_id: int, token_hash: str, now: datetime) -> Optional[PasswordResetToken]:
        """Find an unused, unexpired token for this user."""
        return (
            self.db.query(PasswordResetToken)
            .filter(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used.is_(False),
                PasswordResetToken.expires_at > now,
            )
            .first()
        )

    def mark_used(self, token_id: int) -> bool:
        """
        Consume a token exactly once.

        Returns:
            False if another request consumed it first
        """
        result = self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == token_id,
                PasswordResetToken.used.is_(False),
            )
            .values(used=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
