from sqlalchemy import String, ForeignKey, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.household import Household
    from app.models.user import User


class HouseholdInvitation(BaseModel):
    """
    Pending invitation for one email address to join one household.

    Pending until accepted; an expired or unknown token is simply not found.
    At most one pending, unexpired invitation exists per (email, household).
    """

    __tablename__ = "household_invitations"

    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    token_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    invited_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    household: Mapped["Household"] = relationship(
        "Household", back_populates="invitations"
    )
    invited_by: Mapped["User"] = relationship(
        "User", back_populates="sent_invitations", foreign_keys=[invited_by_user_id]
    )
