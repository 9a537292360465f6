"""
Generic repository over one model.

Repositories never commit: the calling service owns the transaction
boundary so an inventory change and its audit entry land atomically.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import RepositoryError
from app.core.logging import get_logger
from app.models.base import BaseModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def flush(self) -> None:
        """
        Flush pending changes.

        Version conflicts and unique-key collisions propagate unchanged so
        the service retry loop can see them; other database failures
        become a RepositoryError.
        """
        try:
            self.db.flush()
        except (StaleDataError, IntegrityError):
            raise
        except SQLAlchemyError as e:
            raise RepositoryError(f"Flush of {self.model.__name__} failed: {e}") from e

    def create(self, entity: ModelType, flush: bool = True) -> ModelType:
        self.db.add(entity)
        if flush:
            self.flush()
        logger.debug("Created %s %s", self.model.__name__, entity.id)
        return entity

    def find_by_id(self, id: str) -> Optional[ModelType]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Lookup of {self.model.__name__} {id} failed: {e}") from e

    def update(self, entity: ModelType, data: Dict[str, Any], flush: bool = True) -> ModelType:
        """Set the given columns on a loaded entity; unknown keys are ignored."""
        for key, value in data.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        if flush:
            self.flush()
        return entity

    def delete(self, entity: ModelType, flush: bool = True) -> None:
        self.db.delete(entity)
        if flush:
            self.flush()
        logger.debug("Deleted %s %s", self.model.__name__, entity.id)
