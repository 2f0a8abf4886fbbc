"""
Dining tables and their orders (the floor).

Item flow on the floor side:
    add (pendiente) -> send (enviado) -> ... kitchen ... -> listo -> servido
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_api.services.domain import TableService
from pos_shared.config.constants import BILLING_ROLES, FLOOR_ROLES, MANAGEMENT_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.billing_schemas import InvoiceCreated
from pos_shared.utils.schemas import DeleteResponse
from pos_shared.utils.table_schemas import (
    OrderInvoiceCreate,
    OrderItemCreate,
    OrderItemOutput,
    OrderItemStatusUpdate,
    OrderMove,
    OrderOutput,
    OrderSendResult,
    TableCreate,
    TableOutput,
    TableUpdate,
)


router = APIRouter(prefix="/api/tables", tags=["tables"])
orders_router = APIRouter(prefix="/api/orders", tags=["orders"])


def _floor_tenant(ctx: dict[str, Any]) -> int:
    require_roles(ctx, FLOOR_ROLES)
    return require_tenant(ctx)


# =============================================================================
# Tables
# =============================================================================


@router.get("", response_model=list[TableOutput])
def list_tables(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[TableOutput]:
    return TableService(db).list_tables(_floor_tenant(ctx))


@router.post("", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    """Create a table. Counts against the plan's max_tables."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return TableService(db).create_table(
        body, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx)
    )


@router.put("/{table_id}", response_model=TableOutput)
def update_table(
    table_id: int,
    body: TableUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return TableService(db).update_table(
        table_id, body, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx)
    )


@router.delete("/{table_id}", response_model=DeleteResponse)
def delete_table(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    require_roles(ctx, MANAGEMENT_ROLES)
    TableService(db).delete_table(table_id, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=table_id)


@router.post("/{table_id}/open", response_model=OrderOutput)
def open_table(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Return the table's open order, creating it if needed."""
    tenant_id = _floor_tenant(ctx)
    return TableService(db).open_table(table_id, tenant_id, get_user_id(ctx), get_user_email(ctx))


@router.put("/{table_id}/release", response_model=TableOutput)
def release_table(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    tenant_id = _floor_tenant(ctx)
    return TableService(db).release_table(table_id, tenant_id, get_user_id(ctx), get_user_email(ctx))


# =============================================================================
# Orders
# =============================================================================


@orders_router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    return TableService(db).get_order(order_id, _floor_tenant(ctx))


@orders_router.post(
    "/{order_id}/items", response_model=OrderItemOutput, status_code=status.HTTP_201_CREATED
)
def add_order_item(
    order_id: int,
    body: OrderItemCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderItemOutput:
    return TableService(db).add_item(order_id, body, _floor_tenant(ctx))


@orders_router.delete("/items/{item_id}", response_model=DeleteResponse)
def delete_order_item(
    item_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    """Only items still pendiente can be removed."""
    TableService(db).delete_item(item_id, _floor_tenant(ctx))
    return DeleteResponse(id=item_id)


@orders_router.put("/items/{item_id}/send", response_model=OrderItemOutput)
def send_order_item(
    item_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderItemOutput:
    return TableService(db).send_item(item_id, _floor_tenant(ctx))


@orders_router.put("/items/{item_id}/status", response_model=OrderItemOutput)
def set_order_item_status(
    item_id: int,
    body: OrderItemStatusUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderItemOutput:
    """Mark a ready item as served (listo -> servido)."""
    return TableService(db).set_item_status(item_id, body.status, _floor_tenant(ctx))


@orders_router.put("/{order_id}/send", response_model=OrderSendResult)
def send_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderSendResult:
    """Send every pending item of the order to the kitchen."""
    return TableService(db).send_order(order_id, _floor_tenant(ctx))


@orders_router.put("/{order_id}/move", response_model=OrderOutput)
def move_order(
    order_id: int,
    body: OrderMove,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    tenant_id = _floor_tenant(ctx)
    return TableService(db).move_order(
        order_id, body.target_table_id, tenant_id, get_user_id(ctx), get_user_email(ctx)
    )


@orders_router.post(
    "/{order_id}/invoice", response_model=InvoiceCreated, status_code=status.HTTP_201_CREATED
)
def invoice_order(
    order_id: int,
    body: OrderInvoiceCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> InvoiceCreated:
    """Bill the order, mark it facturado and free its table."""
    require_roles(ctx, BILLING_ROLES)
    return TableService(db).invoice_order(
        order_id, body, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx)
    )
