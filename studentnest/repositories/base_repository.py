"""
Base repository with standardized read/write helpers and pagination.

Repositories never commit: the calling service owns the unit of work.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from studentnest.core.logging import get_logger
from studentnest.models.base import BaseModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


@dataclass
class PageInfo:
    """Pagination metadata."""

    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
        }


@dataclass
class PaginatedResult(Generic[ModelType]):
    items: List[ModelType] = field(default_factory=list)
    page_info: Optional[PageInfo] = None


class BaseRepository(Generic[ModelType]):
    """
    Base repository for one model class bound to one session.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """Add entity to the session and flush so defaults and the id are populated."""
        self.db.add(entity)
        self.db.flush()
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, id: str) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def find_by_id_fresh(self, id: str) -> Optional[ModelType]:
        """Find by id, discarding any state cached in the identity map."""
        return self.db.get(self.model, id, populate_existing=True)

    def paginate_query(self, query: Query, page: int = 1, limit: int = 10) -> PaginatedResult[ModelType]:
        page = max(page, 1)
        limit = max(limit, 1)
        total = query.order_by(None).count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        return PaginatedResult(items=items, page_info=PageInfo(page=page, limit=limit, total=total))

    # ==================== Delete Operations ====================

    def delete(self, entity: ModelType) -> None:
        self.db.delete(entity)
        self.db.flush()
        logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")

    def refresh(self, entity: ModelType) -> ModelType:
        self.db.refresh(entity)
        return entity
