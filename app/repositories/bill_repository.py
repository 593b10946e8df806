from sqlalchemy.orm import Session
from sqlalchemy import update
from sqlalchemy.sql.elements import ColumnElement
from typing import List, Optional
from app.models.bill import Bill
from app.repositories.repository import BaseRepository


class BillRepository(BaseRepository[Bill]):
    """Repository for bill operations."""

    def __init__(self, db: Session):
        super().__init__(Bill, db)

    def list_visible(self, scope: ColumnElement[bool], skip: int = 0, limit: int = 100) -> List[Bill]:
        """Get bills matching a visibility clause, newest first."""
        return (
            self.db.query(Bill)
            .filter(scope)
            .order_by(Bill.date.desc(), Bill.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_visible(self, bill_id: int, scope: ColumnElement[bool]) -> Optional[Bill]:
        """Get a single bill if it falls within the visibility clause."""
        return (
            self.db.query(Bill)
            .filter(Bill.id == bill_id)
            .filter(scope)
            .first()
        )

    def set_household_for_owner(self, user_id: int, household_id: Optional[int]) -> None:
        """Re-scope every bill created by ``user_id``."""
        self.db.execute(
            update(Bill).where(Bill.user_id == user_id).values(household_id=household_id)
        )

    def detach_all_from_household(self, household_id: int) -> None:
        """Return every bill of a household to its creator's personal scope."""
        self.db.execute(
            update(Bill)
            .where(Bill.household_id == household_id)
            .values(household_id=None)
        )
