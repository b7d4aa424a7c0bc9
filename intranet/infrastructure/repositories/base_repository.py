"""
SQLAlchemy implementation of the Base Repository.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from intranet.domain.repositories.base import BaseRepository
from intranet.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Session-bound repository for a single model."""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.db.get(self.model, id)
