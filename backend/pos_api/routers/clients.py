"""
Client endpoints.
Floor staff can look clients up and register them at the counter.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pos_api.repositories import ClientFilters
from pos_api.routers._common import Pagination, get_pagination, update_payload
from pos_api.services.domain import ClientService
from pos_shared.config.constants import BILLING_ROLES, FLOOR_ROLES, Limits, MANAGEMENT_ROLES
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.admin_schemas import (
    ClientCreate,
    ClientOutput,
    ClientUpdate,
    TopClientOutput,
)
from pos_shared.utils.schemas import DeleteResponse, Page


router = APIRouter(prefix="/api/clients", tags=["clients"])

CLIENT_NULLABLE_FIELDS = ["phone", "address", "email", "tax_id"]


@router.get("", response_model=Page[ClientOutput])
def list_clients(
    q: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> Page[ClientOutput]:
    require_roles(ctx, FLOOR_ROLES)
    filters = ClientFilters(limit=pagination.limit, offset=pagination.offset, search=q)
    items, total = ClientService(db).list_clients(require_tenant(ctx), filters)
    return Page(items=items, pagination=pagination.info(total))


@router.get("/search", response_model=list[ClientOutput])
def search_clients(
    q: str = "",
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[ClientOutput]:
    """Name, phone or tax id match (max 20)."""
    require_roles(ctx, FLOOR_ROLES)
    return ClientService(db).search(require_tenant(ctx), q)


@router.get("/top", response_model=list[TopClientOutput])
def top_clients(
    limit: int = Query(default=Limits.DEFAULT_TOP_N, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[TopClientOutput]:
    require_roles(ctx, BILLING_ROLES)
    return ClientService(db).top_clients(require_tenant(ctx), limit)


@router.get("/{client_id}", response_model=ClientOutput)
def get_client(
    client_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ClientOutput:
    require_roles(ctx, FLOOR_ROLES)
    return ClientService(db).get_by_id(client_id, require_tenant(ctx))


@router.post("", response_model=ClientOutput, status_code=status.HTTP_201_CREATED)
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ClientOutput:
    require_roles(ctx, FLOOR_ROLES)
    return ClientService(db).create(
        body.model_dump(), require_tenant(ctx), get_user_id(ctx), get_user_email(ctx)
    )


@router.put("/{client_id}", response_model=ClientOutput)
def update_client(
    client_id: int,
    body: ClientUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ClientOutput:
    require_roles(ctx, BILLING_ROLES)
    return ClientService(db).update(
        client_id,
        update_payload(body, nullable=CLIENT_NULLABLE_FIELDS),
        require_tenant(ctx),
        get_user_id(ctx),
        get_user_email(ctx),
    )


@router.delete("/{client_id}", response_model=DeleteResponse)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    """Blocked while invoices reference the client."""
    require_roles(ctx, MANAGEMENT_ROLES)
    ClientService(db).delete(client_id, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=client_id)
