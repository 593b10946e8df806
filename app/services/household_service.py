from sqlalchemy.orm import Session
from typing import Optional
import logging
from app.models.household import Household
from app.models.user import User
from app.repositories.household_repository import HouseholdRepository
from app.repositories.userRepository import UserRepository
from app.repositories.bill_repository import BillRepository
from app.schemas.household import HouseholdCreate
from app.core.exception import (
    ResourceNotFoundException,
    BadRequestException,
    ConflictException,
)

logger = logging.getLogger(__name__)

ALREADY_IN_HOUSEHOLD = "You are already in a household. Leave your current household first."


class HouseholdService:
    """
    Service layer for household membership.

    A user is either unaffiliated (``household_id`` is None) or in exactly
    one household. Joining migrates the user's bills into the household,
    leaving returns them to personal scope. A household never outlives its
    last member: every detach re-counts members inside the same transaction,
    under a row lock on the household, and deletes it when none remain.
    """

    def __init__(self, db: Session):
        self.db = db
        self.household_repo = HouseholdRepository(db)
        self.user_repo = UserRepository(db)
        self.bill_repo = BillRepository(db)

    def get_my_household(self, user_id: int) -> Optional[Household]:
        """Get the caller's household, or None when unaffiliated."""
        user = self._get_user(user_id)
        if user.household_id is None:
            return None
        return self.household_repo.get(user.household_id)

    def create_household(self, user_id: int, data: HouseholdCreate) -> Household:
        """
        Create a household and move the creator (and their bills) into it.

        Raises:
            ConflictException: If the caller is already in a household
        """
        user = self._get_user(user_id)
        if user.household_id is not None:
            raise ConflictException(ALREADY_IN_HOUSEHOLD)

        household = Household(name=data.name)
        self.household_repo.add(household)

        if not self.attach_member(household.id, user.id):
            raise ConflictException(ALREADY_IN_HOUSEHOLD)

        self.db.commit()
        self.db.refresh(household)
        logger.info("User %s created household %s", user.id, household.id)
        return household

    def leave_household(self, user_id: int) -> dict:
        """
        Leave the current household.

        The caller's bills stay with the caller and lose their household
        scope. The household is deleted if the caller was its last member.

        Raises:
            BadRequestException: If the caller is not in a household
        """
        user = self._get_user(user_id)
        if user.household_id is None:
            raise BadRequestException("You are not in a household")

        dissolved = self.detach_member(user.household_id, user.id)
        self.db.commit()

        if dissolved:
            return {"message": "Left household successfully. The household was removed as you were its last member."}
        return {"message": "Left household successfully"}

    def remove_member(self, user_id: int, member_id: int) -> dict:
        """
        Remove another member from the caller's household.

        Raises:
            BadRequestException: If the caller is not in a household, or the
                target is not in the caller's household
            ResourceNotFoundException: If the target user does not exist
        """
        user = self._get_user(user_id)
        if user.household_id is None:
            raise BadRequestException("You are not in a household")

        member = self.user_repo.get(member_id)
        if member is None:
            raise ResourceNotFoundException("Member", member_id)

        if member.household_id != user.household_id:
            raise BadRequestException("That user is not in your household")

        self.detach_member(user.household_id, member.id)
        self.db.commit()
        logger.info("User %s removed member %s", user.id, member.id)
        return {"message": "Member removed from household successfully"}

    def delete_household(self, user_id: int) -> dict:
        """
        Dissolve the caller's household for every member.

        Members become unaffiliated, all household bills return to their
        creators' personal scope and pending invitations are deleted.

        Raises:
            BadRequestException: If the caller is not in a household
        """
        user = self._get_user(user_id)
        if user.household_id is None:
            raise BadRequestException("You are not in a household")

        household_id = user.household_id
        household = self.household_repo.get_for_update(household_id)
        if household is None:
            raise ResourceNotFoundException("Household", household_id)

        self.user_repo.detach_all_from_household(household_id)
        self.bill_repo.detach_all_from_household(household_id)
        self.household_repo.delete(household)

        self.db.commit()
        logger.info("User %s dissolved household %s", user.id, household_id)
        return {"message": "Household deleted successfully"}

    def attach_member(self, household_id: int, user_id: int) -> bool:
        """
        Move a user and every bill they created into a household.

        The user row is only updated while it has no household. Does not
        commit.

        Returns:
            False if the user was already in a household
        """
        if not self.user_repo.join_household(user_id, household_id):
            return False
        self.bill_repo.set_household_for_owner(user_id, household_id)
        return True

    def detach_member(self, household_id: int, user_id: int) -> bool:
        """
        Take a user (and their bills) out of a household.

        Does not commit; the caller owns the transaction.

        Returns:
            True if the household was left empty and has been deleted
        """
        household = self.household_repo.get_for_update(household_id)

        self.user_repo.leave_household(user_id)
        self.bill_repo.set_household_for_owner(user_id, None)

        remaining = self.user_repo.count_household_members(household_id)
        if remaining == 0 and household is not None:
            self.household_repo.delete(household)
            logger.info("Household %s removed after its last member left", household_id)
            return True

        logger.info("User %s left household %s (%d remaining)", user_id, household_id, remaining)
        return False

    def _get_user(self, user_id: int) -> User:
        user = self.user_repo.get(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)
        return user
