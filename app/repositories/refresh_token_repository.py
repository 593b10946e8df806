from sqlalchemy.orm import Session
from sqlalchemy import update
from datetime import datetime
from typing import Optional
from app.models.refresh_token import RefreshToken
from app.repositories.repository import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Repository for refresh token operations."""

    def __init__(self, db: Session):
        super().__init__(RefreshToken, db)

    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        """Get a refresh token row by its opaque value."""
        return self.db.query(RefreshToken).filter(RefreshToken.token == token).first()

    def revoke_if_active(self, token_id: int, now: datetime) -> bool:
        """
        Compare-and-set the revocation flag.

        The UPDATE only matches a row that is still unrevoked and unexpired,
        so when two requests present the same token only one of them sees a
        row count of 1.

        Returns:
            True if this call revoked the token
        """
        result = self.db.execute(
            update(RefreshToken)
            .where(
                RefreshToken.id == token_id,
                RefreshToken.is_revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(is_revoked=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def revoke(self, token: str) -> None:
        """Mark a token revoked; unknown tokens are ignored."""
        self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.token == token)
            .values(is_revoked=True)
            .execution_options(synchronize_session="fetch")
        )
