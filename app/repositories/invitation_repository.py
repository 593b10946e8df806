from sqlalchemy.orm import Session, joinedload
from sqlalchemy import update, func
from datetime import datetime
from typing import Optional
from app.models.household_invitation import HouseholdInvitation
from app.repositories.repository import BaseRepository


class InvitationRepository(BaseRepository[HouseholdInvitation]):
    """Repository for household invitations."""

    def __init__(self, db: Session):
        super().__init__(HouseholdInvitation, db)

    def get_pending(self, household_id: int, email: str, now: datetime) -> Optional[HouseholdInvitation]:
        """Outstanding invitation for this (household, email) pair, if any."""
        return (
            self.db.query(HouseholdInvitation)
            .filter(
                HouseholdInvitation.household_id == household_id,
                func.lower(HouseholdInvitation.email) == email.lower(),
                HouseholdInvitation.accepted.is_(False),
                HouseholdInvitation.expires_at > now,
            )
            .first()
        )

    def get_pending_by_hash(
        self, token_hash: str, now: datetime, email: Optional[str] = None
    ) -> Optional[HouseholdInvitation]:
        """
        Look up an unaccepted, unexpired invitation by token hash.

        Args:
            token_hash: SHA-256 of the emailed token
            now: Reference time for expiry
            email: When given, the invitation must also be addressed to it
        """
        query = (
            self.db.query(HouseholdInvitation)
            .options(
                joinedload(HouseholdInvitation.household),
                joinedload(HouseholdInvitation.invited_by),
            )
            .filter(
                HouseholdInvitation.token_hash == token_hash,
                HouseholdInvitation.accepted.is_(False),
                HouseholdInvitation.expires_at > now,
            )
        )
        if email is not None:
            query = query.filter(func.lower(HouseholdInvitation.email) == email.lower())
        return query.first()

    def mark_accepted(self, invitation_id: int, now: datetime) -> bool:
        """
        Accept an invitation exactly once.

        Returns:
            False if it had already been accepted
        """
        result = self.db.execute(
            update(HouseholdInvitation)
            .where(
                HouseholdInvitation.id == invitation_id,
                HouseholdInvitation.accepted.is_(False),
            )
            .values(accepted=True, accepted_at=now)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
