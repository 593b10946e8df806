from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from typing import Optional, List, TYPE_CHECKING
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.household import Household
    from app.models.bill import Bill
    from app.models.refresh_token import RefreshToken
    from app.models.password_reset_token import PasswordResetToken
    from app.models.household_invitation import HouseholdInvitation


class User(BaseModel):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(256), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))

    # Weak reference: cleared when the household is dissolved
    household_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("households.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
        index=True,
    )

    # Relationships
    household: Mapped[Optional["Household"]] = relationship(
        "Household",
        back_populates="members",
        foreign_keys=[household_id],
    )
    bills: Mapped[List["Bill"]] = relationship(
        "Bill",
        back_populates="owner",
        foreign_keys="[Bill.user_id]",
        cascade="all, delete-orphan",
    )
    refresh_tokens: Mapped[List["RefreshToken"]] = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    password_reset_tokens: Mapped[List["PasswordResetToken"]] = relationship(
        "PasswordResetToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    sent_invitations: Mapped[List["HouseholdInvitation"]] = relationship(
        "HouseholdInvitation",
        back_populates="invited_by",
        foreign_keys="[HouseholdInvitation.invited_by_user_id]",
        cascade="all, delete-orphan",
    )
