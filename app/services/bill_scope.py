"""
Bill scoping rules.

A caller in a household sees every bill stamped with that household. An
unaffiliated caller sees the bills they created that carry no household.
"""
from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

from app.models.bill import Bill
from app.models.user import User


def visibility_clause(user: User) -> ColumnElement[bool]:
    """SQL filter selecting exactly the bills ``user`` may see."""
    if user.household_id is not None:
        return Bill.household_id == user.household_id
    return and_(Bill.household_id.is_(None), Bill.user_id == user.id)


def stamp_new_bill(bill: Bill, user: User) -> Bill:
    """Set ownership on a bill being created; the household is fixed at this moment."""
    bill.user_id = user.id
    bill.household_id = user.household_id
    return bill
