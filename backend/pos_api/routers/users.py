"""
Staff user management for the restaurant admin.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_api.repositories import UserFilters
from pos_api.routers._common import Pagination, get_pagination
from pos_api.services.domain import UserService
from pos_shared.config.constants import MANAGEMENT_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.admin_schemas import UserCreate, UserOutput, UserUpdate
from pos_shared.utils.schemas import DeleteResponse, Page


router = APIRouter(prefix="/api/users", tags=["users"])


def _admin_tenant(ctx: dict[str, Any]) -> int:
    require_roles(ctx, MANAGEMENT_ROLES)
    return require_tenant(ctx)


@router.get("", response_model=Page[UserOutput])
def list_users(
    q: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> Page[UserOutput]:
    tenant_id = _admin_tenant(ctx)
    service = UserService(db)
    filters = UserFilters(limit=pagination.limit, offset=pagination.offset, search=q)
    return Page(
        items=service.list_all(tenant_id, filters),
        pagination=pagination.info(service.count(tenant_id, filters)),
    )


@router.get("/{user_id}", response_model=UserOutput)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> UserOutput:
    return UserService(db).get_by_id(user_id, _admin_tenant(ctx))


@router.post("", response_model=UserOutput, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> UserOutput:
    """Create a staff user. Counts against the plan's max_users."""
    tenant_id = _admin_tenant(ctx)
    return UserService(db).create_user(body, tenant_id, get_user_id(ctx), get_user_email(ctx))


@router.put("/{user_id}", response_model=UserOutput)
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> UserOutput:
    tenant_id = _admin_tenant(ctx)
    return UserService(db).update_user(
        user_id, body, tenant_id, get_user_id(ctx), get_user_email(ctx)
    )


@router.delete("/{user_id}", response_model=DeleteResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    tenant_id = _admin_tenant(ctx)
    UserService(db).delete_user(user_id, tenant_id, get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=user_id)
