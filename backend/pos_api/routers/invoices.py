"""
Invoice endpoints.

POST /api/invoices validates the lines, recomputes the total and stores
header, lines and payments in one transaction. Aggregates (/stats,
/top-products) are declared before /{invoice_id}.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pos_api.routers._common import Pagination, get_pagination
from pos_api.services.domain import InvoiceService, ReportService
from pos_api.services.domain.report_service import build_invoice_filters
from pos_shared.config.constants import BILLING_ROLES, Limits
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.billing_schemas import (
    InvoiceCreate,
    InvoiceCreated,
    InvoiceDetail,
    InvoiceReceipt,
    InvoiceStats,
    InvoiceSummary,
    TopProductOutput,
)
from pos_shared.utils.schemas import Page


router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _billing_tenant(ctx: dict[str, Any]) -> int:
    require_roles(ctx, BILLING_ROLES)
    return require_tenant(ctx)


@router.post("", response_model=InvoiceCreated, status_code=status.HTTP_201_CREATED)
def create_invoice(
    body: InvoiceCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> InvoiceCreated:
    """
    Create an invoice with one or more payments.

    Without `payments` a single payment for the full total is made with
    `payment_method`. Lines flagged send_to_kitchen also go to the kitchen.
    """
    tenant_id = _billing_tenant(ctx)
    return InvoiceService(db).create_invoice(body, tenant_id, get_user_id(ctx), get_user_email(ctx))


@router.get("", response_model=Page[InvoiceSummary])
def list_invoices(
    date_from: str | None = None,
    date_to: str | None = None,
    client_id: int | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> Page[InvoiceSummary]:
    tenant_id = _billing_tenant(ctx)
    filters, _, _ = build_invoice_filters(
        date_from,
        date_to,
        default_days=None,
        client_id=client_id,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    items, total = InvoiceService(db).list_invoices(tenant_id, filters)
    return Page(items=items, pagination=pagination.info(total))


@router.get("/stats", response_model=InvoiceStats)
def invoice_stats(
    date_from: str | None = None,
    date_to: str | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> InvoiceStats:
    tenant_id = _billing_tenant(ctx)
    filters, _, _ = build_invoice_filters(date_from, date_to, default_days=None)
    return ReportService(db).invoice_stats(tenant_id, filters)


@router.get("/top-products", response_model=list[TopProductOutput])
def top_products(
    date_from: str | None = None,
    date_to: str | None = None,
    limit: int = Query(default=Limits.DEFAULT_TOP_N, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[TopProductOutput]:
    tenant_id = _billing_tenant(ctx)
    filters, _, _ = build_invoice_filters(date_from, date_to, default_days=None)
    return ReportService(db).top_products(tenant_id, filters, limit)


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> InvoiceDetail:
    return InvoiceService(db).get_detail(invoice_id, _billing_tenant(ctx))


@router.get("/{invoice_id}/receipt", response_model=InvoiceReceipt)
def get_receipt(
    invoice_id: int,
    return_to: str | None = None,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> InvoiceReceipt:
    """Printable receipt: detail plus the restaurant header."""
    return InvoiceService(db).get_receipt(invoice_id, _billing_tenant(ctx), return_to)
