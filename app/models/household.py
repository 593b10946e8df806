from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, TYPE_CHECKING
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.bill import Bill
    from app.models.household_invitation import HouseholdInvitation


class Household(BaseModel):
    """
    A named group of users sharing bill visibility.

    Members and bills are held by reference only: dissolving a household
    clears their ``household_id`` instead of deleting them. Invitations are
    owned outright and go away with the household.
    """

    __tablename__ = "households"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    members: Mapped[List["User"]] = relationship(
        "User",
        back_populates="household",
        foreign_keys="[User.household_id]",
        lazy="selectin",
        order_by="User.id",
    )

    bills: Mapped[List["Bill"]] = relationship(
        "Bill",
        back_populates="household",
        foreign_keys="[Bill.household_id]",
    )

    invitations: Mapped[List["HouseholdInvitation"]] = relationship(
        "HouseholdInvitation",
        back_populates="household",
        cascade="all, delete-orphan",
    )
