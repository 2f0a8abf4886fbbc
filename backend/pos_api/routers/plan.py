"""
Plan usage of the current restaurant.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pos_api.services.domain import PlanLimitService
from pos_shared.config.constants import MANAGEMENT_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, require_tenant
from pos_shared.utils.admin_schemas import PlanUsageOutput


router = APIRouter(prefix="/api/plan", tags=["plan"])


@router.get("/usage", response_model=PlanUsageOutput)
def plan_usage(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> PlanUsageOutput:
    """Plan name, its limits and the live usage counters."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return PlanLimitService(db).usage(require_tenant(ctx))
