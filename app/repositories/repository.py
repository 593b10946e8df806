from sqlalchemy.orm import Session
from typing import Generic, Type, TypeVar, Optional, Dict, Any
from app.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """
    Base repository with common CRUD operations.

    Repositories only stage and flush changes. Committing is left to the
    service that owns the unit of work, so a multi-step operation either
    lands as a whole or not at all.
    """

    def __init__(self, model: Type[T], db: Session):
        """
        Initialize repository with model and database session.

        Args:
            model: The SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get(self, id: int) -> Optional[T]:
        """Get a single record by ID."""
        return self.db.query(self.model).filter(self.model.id == id).first()

    def add(self, obj: T) -> T:
        """Stage a new record and flush it so generated keys are populated."""
        self.db.add(obj)
        self.db.flush()
        return obj

    def update(self, obj: T, data: Dict[str, Any]) -> T:
        """Apply field updates to a loaded record."""
        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        self.db.flush()
        return obj

    def delete(self, obj: T) -> None:
        """Delete a loaded record."""
        self.db.delete(obj)
        self.db.flush()
