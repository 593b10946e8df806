from sqlalchemy import String, Date, ForeignKey, Numeric, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
import datetime
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.household import Household
    from app.models.user import User


class Bill(BaseModel):
    """
    A bill record.

    ``user_id`` is the creator and never changes. ``household_id`` is set
    when the creator belonged to a household at creation (or migration) time
    and is cleared when the creator leaves or the household is dissolved.
    """

    __tablename__ = "bills"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(18, 2, asdecimal=False), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    amount_over_minimum: Mapped[float] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=False, default=0
    )

    # Payment status
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_date: Mapped[Optional[datetime.date]] = mapped_column(Date, nullable=True, default=None)

    # Foreign keys
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    household_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("households.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User", back_populates="bills", foreign_keys=[user_id]
    )
    household: Mapped[Optional["Household"]] = relationship(
        "Household", back_populates="bills", foreign_keys=[household_id]
    )
