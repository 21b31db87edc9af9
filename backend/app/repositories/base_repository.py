# backend/app/repositories/base_repository.py
"""
Base Repository Pattern for the Groupo messaging backend.

Repositories are the Persistence Gateway: they own every query against
conversations, messages and attachments, never commit (transactions are
managed by services), and translate ``SQLAlchemyError`` into
``RepositoryException``.
"""

import logging
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Common data access patterns shared by concrete repositories.

    Attributes:
        db: SQLAlchemy session (managed by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def update(self, id: str, **kwargs) -> Optional[T]:
        """Update only the provided fields; returns None when the row is missing."""
        try:
            entity = self.get_by_id(id, load_relationships=False)
            if not entity:
                return None
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.model.__name__} {id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}")

    # Protected helper methods for use by subclasses

    def _apply_eager_loading(self, query: Query) -> Query:
        """Override in subclasses to specify which relationships to load."""
        return query
