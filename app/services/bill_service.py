from sqlalchemy.orm import Session
from datetime import date
from typing import List
from app.models.bill import Bill
from app.models.user import User
from app.repositories.bill_repository import BillRepository
from app.schemas.bill import BillInput
from app.services import bill_scope
from app.core.exception import ResourceNotFoundException


class BillService:
    """Service layer for bills, always filtered through the caller's scope."""

    def __init__(self, db: Session):
        self.db = db
        self.bill_repo = BillRepository(db)

    def list_bills(self, user: User, skip: int = 0, limit: int = 100) -> List[Bill]:
        """Get every bill visible to the caller."""
        return self.bill_repo.list_visible(bill_scope.visibility_clause(user), skip, limit)

    def get_bill(self, user: User, bill_id: int) -> Bill:
        """
        Get a bill visible to the caller.

        Raises:
            ResourceNotFoundException: If the bill does not exist or is not
                visible to the caller
        """
        bill = self.bill_repo.get_visible(bill_id, bill_scope.visibility_clause(user))
        if bill is None:
            raise ResourceNotFoundException("Bill", bill_id)
        return bill

    def create_bill(self, user: User, data: BillInput) -> Bill:
        """Create a bill owned by the caller, scoped to their current household."""
        bill = Bill(**self._fields(data))
        bill_scope.stamp_new_bill(bill, user)

        self.bill_repo.add(bill)
        self.db.commit()
        self.db.refresh(bill)
        return bill

    def update_bill(self, user: User, bill_id: int, data: BillInput) -> Bill:
        """Replace a visible bill's fields. Owner and household stay as they are."""
        bill = self.get_bill(user, bill_id)

        self.bill_repo.update(bill, self._fields(data))
        self.db.commit()
        self.db.refresh(bill)
        return bill

    def delete_bill(self, user: User, bill_id: int) -> None:
        """Delete a visible bill."""
        bill = self.get_bill(user, bill_id)
        self.bill_repo.delete(bill)
        self.db.commit()

    def _fields(self, data: BillInput) -> dict:
        fields = data.model_dump()
        if not data.is_paid:
            fields["paid_date"] = None
        elif data.paid_date is None:
            fields["paid_date"] = date.today()
        return fields
