"""
Base Repository implementation.
Common data access patterns with tenant isolation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from pos_shared.config.constants import Limits
from pos_shared.utils.validators import escape_like_pattern


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    """Base filters for repository queries."""

    # Pagination
    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    # Soft delete
    include_deleted: bool = False

    # Search
    search: str | None = None

    def __post_init__(self):
        """Validate and normalize filters."""
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)
        if self.search:
            self.search = self.search.strip()[:Limits.MAX_SEARCH_TERM_LENGTH] or None

    @property
    def search_pattern(self) -> str | None:
        """ILIKE pattern for the search term, wildcards escaped."""
        if not self.search:
            return None
        return f"%{escape_like_pattern(self.search)}%"


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Subclasses implement:
    - model: the SQLAlchemy model class
    - _base_query(): tenant-scoped select with eager loading
    - _apply_filters(): entity-specific WHERE clauses (no ordering, no paging)
    - _ordering(): ORDER BY clauses for listings
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    @abstractmethod
    def _base_query(self, tenant_id: int) -> Select:
        """Return the tenant-scoped base query with eager loading."""
        ...

    @abstractmethod
    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        """Apply entity-specific filters to query."""
        ...

    def _ordering(self) -> list[Any]:
        return [self.model.id]

    def _filtered(self, query: Select, filters: RepositoryFilters) -> Select:
        if not filters.include_deleted and hasattr(self.model, "is_active"):
            query = query.where(self.model.is_active.is_(True))
        return self._apply_filters(query, filters)

    def find_all(
        self,
        tenant_id: int,
        filters: RepositoryFilters | None = None,
    ) -> Sequence[ModelT]:
        """Find all entities matching filters, ordered and paginated."""
        filters = filters or RepositoryFilters()
        query = (
            self._filtered(self._base_query(tenant_id), filters)
            .order_by(*self._ordering())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(
        self,
        entity_id: int,
        tenant_id: int,
        include_deleted: bool = False,
    ) -> ModelT | None:
        """Find entity by ID within the tenant."""
        query = self._base_query(tenant_id).where(self.model.id == entity_id)

        if not include_deleted and hasattr(self.model, "is_active"):
            query = query.where(self.model.is_active.is_(True))

        return self._db.execute(query).scalars().unique().first()

    def find_by_ids(
        self,
        entity_ids: list[int],
        tenant_id: int,
        include_deleted: bool = False,
    ) -> Sequence[ModelT]:
        """Find entities by IDs (order not guaranteed)."""
        if not entity_ids:
            return []

        query = self._base_query(tenant_id).where(self.model.id.in_(entity_ids))

        if not include_deleted and hasattr(self.model, "is_active"):
            query = query.where(self.model.is_active.is_(True))

        return self._db.execute(query).scalars().unique().all()

    def count(
        self,
        tenant_id: int,
        filters: RepositoryFilters | None = None,
    ) -> int:
        """Count entities matching filters (ignores pagination)."""
        filters = filters or RepositoryFilters()
        # Plain id select, eager-loading options have no place in a count
        inner = self._filtered(
            select(self.model.id).where(self.model.tenant_id == tenant_id), filters
        )
        query = select(func.count()).select_from(inner.subquery())
        return self._db.scalar(query) or 0

    def exists(self, entity_id: int, tenant_id: int) -> bool:
        """Check if an active entity exists in the tenant."""
        query = (
            select(func.count())
            .select_from(self.model)
            .where(
                self.model.id == entity_id,
                self.model.tenant_id == tenant_id,
            )
        )

        if hasattr(self.model, "is_active"):
            query = query.where(self.model.is_active.is_(True))

        return (self._db.scalar(query) or 0) > 0

    def save(self, entity: ModelT) -> ModelT:
        """Insert or update the entity and refresh it from the database."""
        self._db.add(entity)
        self._db.flush()
        self._db.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        """
        Hard delete entity.
        Business entities are soft-deleted through AuditMixin.soft_delete().
        """
        self._db.delete(entity)
        self._db.flush()
