"""
Integration token management for the restaurant admin.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_api.services.domain import ApiTokenService
from pos_shared.config.constants import MANAGEMENT_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.admin_schemas import ApiTokenCreate, ApiTokenCreated, ApiTokenOutput
from pos_shared.utils.schemas import DeleteResponse


router = APIRouter(prefix="/api/api-tokens", tags=["api-tokens"])


def _admin_tenant(ctx: dict[str, Any]) -> int:
    require_roles(ctx, MANAGEMENT_ROLES)
    return require_tenant(ctx)


@router.get("", response_model=list[ApiTokenOutput])
def list_tokens(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[ApiTokenOutput]:
    return ApiTokenService(db).list_tokens(_admin_tenant(ctx))


@router.post("", response_model=ApiTokenCreated, status_code=status.HTTP_201_CREATED)
def create_token(
    body: ApiTokenCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ApiTokenCreated:
    """The plaintext token is only returned here."""
    tenant_id = _admin_tenant(ctx)
    return ApiTokenService(db).create_token(body, tenant_id, get_user_id(ctx), get_user_email(ctx))


@router.delete("/{token_id}", response_model=DeleteResponse)
def revoke_token(
    token_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    tenant_id = _admin_tenant(ctx)
    ApiTokenService(db).revoke_token(token_id, tenant_id, get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=token_id)
