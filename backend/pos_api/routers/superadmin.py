"""
Superadmin router: restaurants (tenants), their users and plan limits.
Every endpoint requires the superadmin role.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_api.services.domain import PlanLimitService, TenantService
from pos_shared.config.constants import TenantStatus
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_superadmin,
)
from pos_shared.utils.admin_schemas import (
    PasswordReset,
    PlanLimitOutput,
    PlanLimitUpdate,
    TenantCreate,
    TenantCreated,
    TenantOutput,
    TenantUpdate,
    TenantWithStats,
    UserOutput,
)
from pos_shared.utils.schemas import DeleteResponse


router = APIRouter(prefix="/api/superadmin", tags=["superadmin"])


def superadmin(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    require_superadmin(ctx)
    return ctx


# =============================================================================
# Tenants
# =============================================================================


@router.get("/tenants", response_model=list[TenantWithStats])
def list_tenants(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> list[TenantWithStats]:
    """All restaurants with user, product and invoice counts and total sales."""
    return TenantService(db).list_with_stats()


@router.post("/tenants", response_model=TenantCreated, status_code=status.HTTP_201_CREATED)
def create_tenant(
    body: TenantCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> TenantCreated:
    """Create a restaurant together with its admin user."""
    return TenantService(db).create(body, get_user_id(ctx), get_user_email(ctx))


@router.put("/tenants/{tenant_id}", response_model=TenantOutput)
def update_tenant(
    tenant_id: int,
    body: TenantUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> TenantOutput:
    return TenantService(db).update(tenant_id, body, get_user_id(ctx), get_user_email(ctx))


@router.put("/tenants/{tenant_id}/suspend", response_model=TenantOutput)
def suspend_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> TenantOutput:
    return TenantService(db).set_status(
        tenant_id, TenantStatus.SUSPENDED, get_user_id(ctx), get_user_email(ctx)
    )


@router.put("/tenants/{tenant_id}/activate", response_model=TenantOutput)
def activate_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> TenantOutput:
    return TenantService(db).set_status(
        tenant_id, TenantStatus.ACTIVE, get_user_id(ctx), get_user_email(ctx)
    )


@router.delete("/tenants/{tenant_id}", response_model=DeleteResponse)
def delete_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> DeleteResponse:
    """Soft delete: the restaurant becomes inactivo and its staff can no longer log in."""
    TenantService(db).delete(tenant_id, get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=tenant_id)


@router.get("/tenants/{tenant_id}/users", response_model=list[UserOutput])
def list_tenant_users(
    tenant_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> list[UserOutput]:
    return TenantService(db).list_users(tenant_id)


@router.put("/users/{user_id}/password")
def reset_user_password(
    user_id: int,
    body: PasswordReset,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> dict[str, bool]:
    TenantService(db).reset_password(user_id, body.password)
    return {"success": True}


@router.get("/stats")
def global_stats(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> dict[str, Any]:
    return TenantService(db).global_stats()


# =============================================================================
# Plans
# =============================================================================


@router.get("/plans", response_model=list[PlanLimitOutput])
def list_plans(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> list[PlanLimitOutput]:
    return PlanLimitService(db).list_plans()


@router.put("/plans/{plan}", response_model=PlanLimitOutput)
def update_plan(
    plan: str,
    body: PlanLimitUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(superadmin),
) -> PlanLimitOutput:
    """Change a plan's limits; the in-process cache is invalidated."""
    return PlanLimitService(db).update_plan(plan, body)
