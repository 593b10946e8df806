from app.models.base import Base, BaseModel
from app.models.user import User
from app.models.household import Household
from app.models.bill import Bill
from app.models.refresh_token import RefreshToken
from app.models.password_reset_token import PasswordResetToken
from app.models.household_invitation import HouseholdInvitation

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Identity
    "User",
    "RefreshToken",
    "PasswordResetToken",
    # Household
    "Household",
    "HouseholdInvitation",
    # Bills
    "Bill",
]
