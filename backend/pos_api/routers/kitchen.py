"""
Kitchen board endpoints. The board polls /queue.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pos_api.services.domain import KitchenService
from pos_shared.config.constants import ALL_STAFF_ROLES, KITCHEN_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, require_tenant
from pos_shared.utils.table_schemas import (
    KitchenItemOutput,
    KitchenStatusResult,
    KitchenStatusUpdate,
)


router = APIRouter(prefix="/api/kitchen", tags=["kitchen"])


@router.get("/queue", response_model=list[KitchenItemOutput])
def kitchen_queue(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[KitchenItemOutput]:
    """Items enviado, preparando or listo, oldest first."""
    require_roles(ctx, ALL_STAFF_ROLES)
    return KitchenService(db).list_queue(require_tenant(ctx))


@router.put("/items/{item_id}/status", response_model=KitchenStatusResult)
def update_kitchen_item(
    item_id: int,
    body: KitchenStatusUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> KitchenStatusResult:
    require_roles(ctx, KITCHEN_ROLES)
    return KitchenService(db).set_status(item_id, body.status, require_tenant(ctx))
