"""
Reports and sales endpoints.

Every endpoint takes the same filters; without dates the range is the
last 30 days.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pos_api.repositories import InvoiceFilters
from pos_api.routers.products import xlsx_response
from pos_api.services.domain import ReportService
from pos_api.services.domain.report_service import build_invoice_filters
from pos_shared.config.constants import BILLING_ROLES, Limits
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, require_roles, require_tenant
from pos_shared.utils.admin_schemas import TopClientOutput
from pos_shared.utils.billing_schemas import (
    PaymentDistributionRow,
    ReportSummary,
    SalesByDayRow,
    SalesOutput,
    TopProductOutput,
)


router = APIRouter(prefix="/api/reports", tags=["reports"])
sales_router = APIRouter(prefix="/api/sales", tags=["sales"])


@dataclass
class ReportQuery:
    tenant_id: int
    filters: InvoiceFilters
    date_from: date
    date_to: date


def report_query(
    date_from: str | None = None,
    date_to: str | None = None,
    q: str | None = Query(default=None, max_length=Limits.MAX_SEARCH_TERM_LENGTH),
    payment_method: str | None = None,
    amount_min: Decimal | None = Query(default=None, ge=0),
    amount_max: Decimal | None = Query(default=None, ge=0),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ReportQuery:
    require_roles(ctx, BILLING_ROLES)
    tenant_id = require_tenant(ctx)
    filters, start, end = build_invoice_filters(
        date_from,
        date_to,
        search=q,
        payment_method=payment_method,
        amount_min=amount_min,
        amount_max=amount_max,
    )
    return ReportQuery(tenant_id=tenant_id, filters=filters, date_from=start, date_to=end)


# =============================================================================
# Reports
# =============================================================================


@router.get("/summary", response_model=ReportSummary)
def summary(
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> ReportSummary:
    return ReportService(db).summary(rq.tenant_id, rq.filters, rq.date_from, rq.date_to)


@router.get("/payment-distribution", response_model=list[PaymentDistributionRow])
def payment_distribution(
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> list[PaymentDistributionRow]:
    return ReportService(db).payment_distribution(rq.tenant_id, rq.filters)


@router.get("/sales-by-day", response_model=list[SalesByDayRow])
def sales_by_day(
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> list[SalesByDayRow]:
    return ReportService(db).sales_by_day(rq.tenant_id, rq.filters)


@router.get("/top-products", response_model=list[TopProductOutput])
def top_products(
    limit: int = Query(default=Limits.DEFAULT_TOP_N, ge=1, le=100),
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> list[TopProductOutput]:
    return ReportService(db).top_products(rq.tenant_id, rq.filters, limit)


@router.get("/top-clients", response_model=list[TopClientOutput])
def top_clients(
    limit: int = Query(default=Limits.DEFAULT_TOP_N, ge=1, le=100),
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> list[TopClientOutput]:
    return ReportService(db).top_clients(rq.tenant_id, rq.filters, limit)


# =============================================================================
# Sales
# =============================================================================


@sales_router.get("", response_model=SalesOutput)
def list_sales(
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> SalesOutput:
    """Invoices in the range with totals per payment method."""
    return ReportService(db).sales(rq.tenant_id, rq.filters, rq.date_from, rq.date_to)


@sales_router.get("/export")
def export_sales(
    rq: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
) -> StreamingResponse:
    content = ReportService(db).sales_export(rq.tenant_id, rq.filters)
    filename = f"ventas_{rq.date_from.isoformat()}_{rq.date_to.isoformat()}.xlsx"
    return xlsx_response(content, filename)
