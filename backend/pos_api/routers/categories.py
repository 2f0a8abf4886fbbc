"""
Product category endpoints.
Staff can read; only the admin can change categories.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_api.repositories import CategoryFilters
from pos_api.routers._common import update_payload
from pos_api.services.domain import CategoryService
from pos_shared.config.constants import ALL_STAFF_ROLES, Limits, MANAGEMENT_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.admin_schemas import CategoryCreate, CategoryOutput, CategoryUpdate
from pos_shared.utils.schemas import DeleteResponse


router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOutput])
def list_categories(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[CategoryOutput]:
    """Active categories ordered by sort_order, then name."""
    require_roles(ctx, ALL_STAFF_ROLES)
    filters = CategoryFilters(limit=Limits.MAX_PAGE_SIZE)
    return CategoryService(db).list_all(require_tenant(ctx), filters)


@router.get("/{category_id}", response_model=CategoryOutput)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    require_roles(ctx, ALL_STAFF_ROLES)
    return CategoryService(db).get_by_id(category_id, require_tenant(ctx))


@router.post("", response_model=CategoryOutput, status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return CategoryService(db).create(
        body.model_dump(), require_tenant(ctx), get_user_id(ctx), get_user_email(ctx)
    )


@router.put("/{category_id}", response_model=CategoryOutput)
def update_category(
    category_id: int,
    body: CategoryUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return CategoryService(db).update(
        category_id,
        update_payload(body, nullable=["description"]),
        require_tenant(ctx),
        get_user_id(ctx),
        get_user_email(ctx),
    )


@router.delete("/{category_id}", response_model=DeleteResponse)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    """Blocked while active products reference the category."""
    require_roles(ctx, MANAGEMENT_ROLES)
    CategoryService(db).delete(category_id, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=category_id)
