import pytest
from datetime import date
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.models.bill import Bill
from app.schemas.bill import BillInput
from app.schemas.household import HouseholdCreate
from app.services import bill_scope
from app.services.bill_service import BillService
from app.services.household_service import HouseholdService
from app.core.exception import ResourceNotFoundException


def _bill(name: str = "Rent", amount: float = 1000, **extra) -> BillInput:
    return BillInput(name=name, amount=amount, date=date(2026, 3, 1), **extra)


@pytest.mark.unit
class TestBillScope:
    """Ownership stamping for new bills."""

    def test_stamp_new_bill_uses_current_household(self, make_user):
        alice = make_user("alice")
        alice.household_id = 7

        bill = bill_scope.stamp_new_bill(Bill(name="Rent"), alice)

        assert bill.user_id == alice.id
        assert bill.household_id == 7

    def test_stamp_new_bill_without_household(self, make_user):
        alice = make_user("alice")

        bill = bill_scope.stamp_new_bill(Bill(name="Rent"), alice)

        assert bill.user_id == alice.id
        assert bill.household_id is None

    def test_bills_follow_creator_out_of_household(self, db_session: Session, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        households = HouseholdService(db_session)
        household = households.create_household(alice.id, HouseholdCreate(name="Smiths"))
        households.attach_member(household.id, bob.id)
        db_session.commit()
        db_session.refresh(bob)
        shared = BillService(db_session).create_bill(bob, _bill("Internet", 40))

        households.remove_member(alice.id, bob.id)

        db_session.refresh(alice)
        db_session.refresh(bob)
        db_session.refresh(shared)
        assert shared.household_id is None
        assert BillService(db_session).list_bills(alice) == []
        assert [b.id for b in BillService(db_session).list_bills(bob)] == [shared.id]


@pytest.mark.unit
class TestBillService:
    """Unit tests for BillService."""

    def test_create_personal_bill(self, db_session: Session, make_user):
        alice = make_user("alice")

        bill = BillService(db_session).create_bill(alice, _bill())

        assert bill.id is not None
        assert bill.user_id == alice.id
        assert bill.household_id is None
        assert bill.is_paid is False
        assert bill.paid_date is None

    def test_paid_date_rules(self, db_session: Session, make_user):
        alice = make_user("alice")
        service = BillService(db_session)

        paid = service.create_bill(alice, _bill(is_paid=True))
        assert paid.paid_date == date.today()

        explicit = service.create_bill(alice, _bill(is_paid=True, paid_date=date(2026, 3, 5)))
        assert explicit.paid_date == date(2026, 3, 5)

        unpaid = service.update_bill(alice, explicit.id, _bill(is_paid=False, paid_date=date(2026, 3, 5)))
        assert unpaid.paid_date is None

    def test_list_is_scoped(self, db_session: Session, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        service = BillService(db_session)
        service.create_bill(alice, _bill("Alice rent"))
        service.create_bill(bob, _bill("Bob rent"))

        assert [b.name for b in service.list_bills(alice)] == ["Alice rent"]
        assert [b.name for b in service.list_bills(bob)] == ["Bob rent"]

    def test_household_members_share_bills(self, db_session: Session, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        service = BillService(db_session)
        households = HouseholdService(db_session)
        household = households.create_household(alice.id, HouseholdCreate(name="Smiths"))
        households.attach_member(household.id, bob.id)
        db_session.commit()
        db_session.refresh(bob)

        bob_bill = service.create_bill(bob, _bill("Internet", 40))

        db_session.refresh(alice)
        assert bob_bill.household_id == household.id
        assert [b.id for b in service.list_bills(alice)] == [bob_bill.id]
        assert service.get_bill(alice, bob_bill.id).id == bob_bill.id

    def test_list_orders_newest_first_and_pages(self, db_session: Session, make_user):
        alice = make_user("alice")
        service = BillService(db_session)
        for day in (1, 3, 2):
            service.create_bill(alice, BillInput(name=f"Day {day}", amount=1, date=date(2026, 4, day)))

        assert [b.name for b in service.list_bills(alice)] == ["Day 3", "Day 2", "Day 1"]
        assert [b.name for b in service.list_bills(alice, skip=1, limit=1)] == ["Day 2"]

    def test_other_users_bill_is_not_found(self, db_session: Session, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        service = BillService(db_session)
        bill = service.create_bill(alice, _bill())

        with pytest.raises(ResourceNotFoundException):
            service.get_bill(bob, bill.id)
        with pytest.raises(ResourceNotFoundException):
            service.update_bill(bob, bill.id, _bill("Hijacked"))
        with pytest.raises(ResourceNotFoundException):
            service.delete_bill(bob, bill.id)

        db_session.refresh(bill)
        assert bill.name == "Rent"

    def test_update_keeps_owner_and_household(self, db_session: Session, make_user):
        alice = make_user("alice")
        service = BillService(db_session)
        bill = service.create_bill(alice, _bill())

        updated = service.update_bill(alice, bill.id, _bill("Mortgage", 1200, amount_over_minimum=50))

        assert updated.name == "Mortgage"
        assert updated.amount == 1200
        assert updated.amount_over_minimum == 50
        assert updated.user_id == alice.id
        assert updated.household_id is None

    def test_delete_bill(self, db_session: Session, make_user):
        alice = make_user("alice")
        service = BillService(db_session)
        bill_id = service.create_bill(alice, _bill()).id

        service.delete_bill(alice, bill_id)

        assert db_session.get(Bill, bill_id) is None


@pytest.mark.unit
class TestBillInput:
    """Validation of bill fields."""

    def test_name_boundaries(self):
        assert BillInput(name="x" * 200, amount=1, date=date(2026, 1, 1)).name == "x" * 200
        with pytest.raises(ValidationError):
            BillInput(name="x" * 201, amount=1, date=date(2026, 1, 1))
        with pytest.raises(ValidationError):
            BillInput(name="   ", amount=1, date=date(2026, 1, 1))

    def test_amounts_must_not_be_negative(self):
        with pytest.raises(ValidationError):
            BillInput(name="Rent", amount=-1, date=date(2026, 1, 1))
        with pytest.raises(ValidationError):
            BillInput(name="Rent", amount=1, date=date(2026, 1, 1), amount_over_minimum=-0.01)
