# backend/consultly/repositories/base_repository.py
"""
Base Repository Pattern for Consultly

Repositories own queries; services own transactions. Nothing in this layer
commits: writes are flushed so generated ids are available, and the service
that opened the unit of work decides whether it is committed.

SQLAlchemy failures are wrapped in RepositoryException, except
IntegrityError, which is re-raised untouched so services can map constraint
violations (for example the live-slot unique index) to domain errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Core data access methods every repository provides."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by primary key, or None."""

    @abstractmethod
    def create(self, **kwargs: Any) -> T:
        """Create and flush a new entity."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Delete by primary key; False if not found."""

    @abstractmethod
    def count(self, **kwargs: Any) -> int:
        """Count entities matching exact-match criteria."""


class BaseRepository(IRepository[T]):
    """
    Default CRUD implementation.

    Attributes:
        db: SQLAlchemy session (managed by service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str) -> Optional[T]:
        try:
            return self.db.query(self.model).filter(self.model.id == id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.warning("Integrity error creating %s: %s", self.model.__name__, exc.orig)
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}")

    def bulk_create(self, rows: List[dict]) -> List[T]:
        try:
            entities = [self.model(**row) for row in rows]
            self.db.add_all(entities)
            self.db.flush()
            return entities
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error bulk creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__} rows: {str(e)}")

    def flush(self) -> None:
        self.db.flush()

    def delete(self, id: str) -> bool:
        try:
            entity = self.get_by_id(id)
            if not entity:
                return False
            self.db.delete(entity)
            self.db.flush()
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to delete {self.model.__name__}: {str(e)}")

    def count(self, **kwargs: Any) -> int:
        try:
            return self.db.query(self.model).filter_by(**kwargs).count()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting records: {str(e)}")
            raise RepositoryException(f"Failed to count records: {str(e)}")

    def find_one_by(self, **kwargs: Any) -> Optional[T]:
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding one by criteria: {str(e)}")
            raise RepositoryException(f"Failed to find record: {str(e)}")
