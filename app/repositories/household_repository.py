from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Optional
from app.models.household import Household
from app.repositories.repository import BaseRepository


class HouseholdRepository(BaseRepository[Household]):
    """Repository for household operations."""

    def __init__(self, db: Session):
        super().__init__(Household, db)

    def get_for_update(self, household_id: int) -> Optional[Household]:
        """
        Load a household and lock its row until the transaction ends.

        Membership changes for the same household are serialized behind this
        lock (ignored by SQLite, which locks the whole database on write).
        """
        stmt = (
            select(Household)
            .where(Household.id == household_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one_or_none()
