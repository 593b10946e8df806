from sqlalchemy import String, ForeignKey, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from datetime import datetime
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.user import User


class RefreshToken(BaseModel):
    """
    Opaque, long-lived credential exchanged for a new access token.

    Rows are never deleted on use, only flagged as revoked, so that the
    rotation history stays auditable. They disappear with their user.
    """

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="refresh_tokens")
