"""
Category Service.

Business rules:
- Names are unique per restaurant among active categories
- A category with active products cannot be deleted
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from pos_api.models import Category
from pos_api.repositories import get_category_repository
from pos_api.services.base_service import BaseCRUDService
from pos_shared.utils.admin_schemas import CategoryOutput
from pos_shared.utils.exceptions import DuplicateEntityError, ValidationError


class CategoryService(BaseCRUDService[Category, CategoryOutput]):
    def __init__(self, db: Session):
        super().__init__(
            db=db,
            repo=get_category_repository(db),
            output_schema=CategoryOutput,
            entity_name="Categoría",
        )

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        if self._repo.find_name_conflict(tenant_id, data["name"]):
            raise DuplicateEntityError("Categoría", data["name"])

    def _validate_update(self, entity: Category, data: dict[str, Any], tenant_id: int) -> None:
        for required in ("name", "color", "icon", "sort_order", "is_active"):
            if required in data and data[required] is None:
                data.pop(required)
        if data.get("name"):
            data["name"] = data["name"].strip()
            if self._repo.find_name_conflict(tenant_id, data["name"], exclude_id=entity.id):
                raise DuplicateEntityError("Categoría", data["name"])

    def _validate_delete(self, entity: Category, tenant_id: int) -> None:
        products = self._repo.count_active_products(entity.id, tenant_id)
        if products:
            raise ValidationError(
                f"No se puede eliminar. Hay {products} producto(s) en esta categoría",
                category_id=entity.id,
            )
