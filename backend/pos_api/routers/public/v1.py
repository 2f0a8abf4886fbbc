"""
Integration API v1.

Authenticated with an API token (X-API-Token header, or a Bearer token)
instead of a staff JWT. Every route checks one permission of the token.

Responses: {"success": true, "data": ..., "pagination": {...}}
"""

from typing import Any

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from pos_api.repositories import ClientFilters, ProductFilters
from pos_api.routers._common import Pagination, get_pagination
from pos_api.services.domain import (
    ApiTokenContext,
    ApiTokenService,
    ClientService,
    InvoiceService,
    ProductService,
)
from pos_api.services.domain.report_service import build_invoice_filters
from pos_shared.config.constants import ApiPermission
from pos_shared.infrastructure.db import get_db
from pos_shared.utils.admin_schemas import (
    ClientCreate,
    ClientOutput,
    ProductCreate,
    ProductOutput,
)
from pos_shared.utils.billing_schemas import InvoiceSummary
from pos_shared.utils.schemas import ApiEnvelope


router = APIRouter(prefix="/api/v1", tags=["public-api"])


def api_token_context(
    x_api_token: str | None = Header(default=None, alias="X-API-Token"),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> ApiTokenContext:
    raw = x_api_token
    if not raw and authorization and authorization.startswith("Bearer "):
        raw = authorization.split(" ", 1)[1]
    return ApiTokenService(db).authenticate(raw)


def _audit_email(api: ApiTokenContext) -> str:
    return f"api-token:{api.token_id}"


@router.get("/info")
def api_info(api: ApiTokenContext = Depends(api_token_context)) -> ApiEnvelope[dict[str, Any]]:
    return ApiEnvelope(
        data={
            "tenant": api.tenant_name,
            "plan": api.plan,
            "permissions": api.permissions,
        }
    )


@router.get("/products")
def list_products(
    search: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    api: ApiTokenContext = Depends(api_token_context),
) -> ApiEnvelope[list[ProductOutput]]:
    api.require(ApiPermission.PRODUCTS_READ)
    filters = ProductFilters(limit=pagination.limit, offset=pagination.offset, search=search)
    items, total = ProductService(db).list_products(api.tenant_id, filters)
    return ApiEnvelope(data=items, pagination=pagination.info(total))


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    db: Session = Depends(get_db),
    api: ApiTokenContext = Depends(api_token_context),
) -> ApiEnvelope[ProductOutput]:
    api.require(ApiPermission.PRODUCTS_WRITE)
    product = ProductService(db).create(body.model_dump(), api.tenant_id, None, _audit_email(api))
    return ApiEnvelope(data=product)


@router.get("/invoices")
def list_invoices(
    date_from: str | None = None,
    date_to: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    api: ApiTokenContext = Depends(api_token_context),
) -> ApiEnvelope[list[InvoiceSummary]]:
    api.require(ApiPermission.INVOICES_READ)
    filters, _, _ = build_invoice_filters(
        date_from,
        date_to,
        default_days=None,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    items, total = InvoiceService(db).list_invoices(api.tenant_id, filters)
    return ApiEnvelope(data=items, pagination=pagination.info(total))


@router.get("/clients")
def list_clients(
    search: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    api: ApiTokenContext = Depends(api_token_context),
) -> ApiEnvelope[list[ClientOutput]]:
    api.require(ApiPermission.CLIENTS_READ)
    filters = ClientFilters(limit=pagination.limit, offset=pagination.offset, search=search)
    items, total = ClientService(db).list_clients(api.tenant_id, filters)
    return ApiEnvelope(data=items, pagination=pagination.info(total))


@router.post("/clients", status_code=status.HTTP_201_CREATED)
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    api: ApiTokenContext = Depends(api_token_context),
) -> ApiEnvelope[ClientOutput]:
    api.require(ApiPermission.CLIENTS_WRITE)
    client = ClientService(db).create(body.model_dump(), api.tenant_id, None, _audit_email(api))
    return ApiEnvelope(data=client)
