"""
Base Service Classes.

Architecture:
    Router (thin) -> Service (business logic) -> Repository (data access) -> Model

Services own the transaction: they flush through repositories and commit
once per use case with safe_commit(), which rolls back on failure and
re-raises so the central handlers can map database errors.

Usage:
    class CategoryService(BaseCRUDService[Category, CategoryOutput]):
        def __init__(self, db: Session):
            super().__init__(
                db=db,
                repo=get_category_repository(db),
                output_schema=CategoryOutput,
                entity_name="Categoría",
            )
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from pos_api.models import Base
from pos_api.repositories import BaseRepository, RepositoryFilters
from pos_shared.config.logging import get_logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.exceptions import NotFoundError

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseService(ABC, Generic[ModelT]):
    """
    Abstract base service for domain operations.
    Provides the session and the entity repository.
    """

    def __init__(self, db: Session, repo: BaseRepository[ModelT]):
        self._db = db
        self._repo = repo

    @property
    def db(self) -> Session:
        return self._db

    @property
    def repo(self) -> BaseRepository[ModelT]:
        return self._repo


class BaseCRUDService(BaseService[ModelT], Generic[ModelT, OutputT]):
    """
    Base service for tenant-scoped entities with CRUD operations.

    Subclasses override the validation hooks for business rules and
    to_output() for custom DTOs.
    """

    def __init__(
        self,
        db: Session,
        repo: BaseRepository[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
        *,
        supports_soft_delete: bool = True,
    ):
        super().__init__(db, repo)
        self._output_schema = output_schema
        self._entity_name = entity_name
        self._supports_soft_delete = supports_soft_delete

    @property
    def entity_name(self) -> str:
        """Human-readable entity name for messages."""
        return self._entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_entity(self, entity_id: int, tenant_id: int) -> ModelT:
        """
        Get the raw entity.

        Raises:
            NotFoundError: If the entity is not in the tenant or is deleted.
        """
        entity = self._repo.find_by_id(entity_id, tenant_id)
        if entity is None:
            raise NotFoundError(self._entity_name, entity_id, tenant_id=tenant_id)
        return entity

    def get_by_id(self, entity_id: int, tenant_id: int) -> OutputT:
        return self.to_output(self.get_entity(entity_id, tenant_id))

    def list_all(
        self, tenant_id: int, filters: RepositoryFilters | None = None
    ) -> list[OutputT]:
        entities = self._repo.find_all(tenant_id, filters)
        return [self.to_output(e) for e in entities]

    def count(self, tenant_id: int, filters: RepositoryFilters | None = None) -> int:
        return self._repo.count(tenant_id, filters)

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(
        self,
        data: dict[str, Any],
        tenant_id: int,
        user_id: int,
        user_email: str,
    ) -> OutputT:
        """
        Create a new entity in the tenant.

        Raises:
            ValidationError / PlanLimitExceededError: From _validate_create.
        """
        self._validate_create(data, tenant_id)

        entity = self._repo.model(**data, tenant_id=tenant_id)
        entity.set_created_by(user_id, user_email)
        self._repo.save(entity)
        safe_commit(self._db)
        self._db.refresh(entity)

        logger.info(
            f"{self._entity_name} creado",
            entity_id=entity.id,
            tenant_id=tenant_id,
            user_id=user_id,
        )
        return self.to_output(entity)

    def update(
        self,
        entity_id: int,
        data: dict[str, Any],
        tenant_id: int,
        user_id: int,
        user_email: str,
    ) -> OutputT:
        """
        Update an existing entity with the given (already filtered) fields.

        Raises:
            NotFoundError: If entity not found.
        """
        entity = self.get_entity(entity_id, tenant_id)
        self._validate_update(entity, data, tenant_id)

        for field_name, value in data.items():
            if hasattr(entity, field_name):
                setattr(entity, field_name, value)

        entity.set_updated_by(user_id, user_email)
        safe_commit(self._db)
        self._db.refresh(entity)

        logger.info(
            f"{self._entity_name} actualizado",
            entity_id=entity_id,
            tenant_id=tenant_id,
            fields=sorted(data.keys()),
        )
        return self.to_output(entity)

    def delete(
        self,
        entity_id: int,
        tenant_id: int,
        user_id: int,
        user_email: str,
    ) -> None:
        """Delete entity (soft delete if supported)."""
        entity = self.get_entity(entity_id, tenant_id)
        self._validate_delete(entity, tenant_id)

        if self._supports_soft_delete:
            entity.soft_delete(user_id, user_email)
        else:
            self._repo.delete(entity)
        safe_commit(self._db)

        logger.info(
            f"{self._entity_name} eliminado",
            entity_id=entity_id,
            tenant_id=tenant_id,
            user_id=user_id,
        )

    # =========================================================================
    # Transformation
    # =========================================================================

    def to_output(self, entity: ModelT) -> OutputT:
        """Convert entity to output DTO. Override for custom fields."""
        return self._output_schema.model_validate(entity)

    # =========================================================================
    # Validation Hooks (override in subclasses)
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        pass

    def _validate_update(self, entity: ModelT, data: dict[str, Any], tenant_id: int) -> None:
        pass

    def _validate_delete(self, entity: ModelT, tenant_id: int) -> None:
        pass
