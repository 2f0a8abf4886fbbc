"""
Report Service - Sales analytics over invoices.

All aggregates share the invoice filters (date range, client name,
payment method, amount range) through apply_invoice_filters, so the
summary, the charts and the sales list always agree.

Dates arrive as YYYY-MM-DD and are turned into a half-open UTC range
[date_from 00:00, date_to + 1 day 00:00).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import Select, distinct, exists, func, select
from sqlalchemy.orm import Session

from pos_api.models import Client, Invoice, InvoiceItem, InvoicePayment
from pos_api.repositories import InvoiceFilters, apply_invoice_filters, get_invoice_repository
from pos_api.services.domain.invoice_service import to_summary
from pos_api.services.excel import build_sales_export
from pos_shared.config.constants import Limits, PaymentMethod
from pos_shared.config.logging import billing_logger as logger
from pos_shared.utils.admin_schemas import TopClientOutput
from pos_shared.utils.billing_schemas import (
    InvoiceStats,
    PaymentDistributionRow,
    ReportSummary,
    SalesByDayRow,
    SalesOutput,
    SalesTotals,
    TopProductOutput,
)
from pos_shared.utils.exceptions import ValidationError
from pos_shared.utils.validators import quantize_money

ZERO = Decimal("0")


# =============================================================================
# Date range parsing
# =============================================================================


def parse_day(value: str | None, field: str) -> date | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Fecha inválida en {field}, use el formato AAAA-MM-DD", field=field)


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_end(day: date) -> datetime:
    """Exclusive upper bound of a range ending on `day`."""
    try:
        return day_start(day + timedelta(days=1))
    except OverflowError:
        raise ValidationError("Fecha fuera de rango en date_to", field="date_to")


def resolve_range(
    date_from: str | None,
    date_to: str | None,
    default_days: int | None = Limits.DEFAULT_REPORT_DAYS,
) -> tuple[date | None, date | None]:
    """
    Parse a report range. With default_days set, missing ends default to
    the last `default_days` days ending today (UTC).

    Raises:
        ValidationError: bad format, or date_from after date_to.
    """
    start = parse_day(date_from, "date_from")
    end = parse_day(date_to, "date_to")

    if default_days is not None:
        today = datetime.now(timezone.utc).date()
        end = end or today
        if start is None:
            try:
                start = end - timedelta(days=default_days)
            except OverflowError:
                start = date.min

    if start and end and start > end:
        raise ValidationError("La fecha inicial no puede ser posterior a la final")
    return start, end


def build_invoice_filters(
    date_from: str | None = None,
    date_to: str | None = None,
    *,
    default_days: int | None = Limits.DEFAULT_REPORT_DAYS,
    search: str | None = None,
    client_id: int | None = None,
    payment_method: str | None = None,
    amount_min: Decimal | None = None,
    amount_max: Decimal | None = None,
    limit: int = Limits.DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> tuple[InvoiceFilters, date | None, date | None]:
    start, end = resolve_range(date_from, date_to, default_days)
    method = (payment_method or "").strip().lower() or None
    if method and method not in PaymentMethod.INVOICE_METHODS:
        raise ValidationError(f"Forma de pago inválida: {payment_method}")
    if amount_min is not None and amount_max is not None and amount_min > amount_max:
        raise ValidationError("El monto mínimo no puede ser mayor al máximo")

    filters = InvoiceFilters(
        limit=limit,
        offset=offset,
        search=search,
        date_from=day_start(start) if start else None,
        date_to=day_end(end) if end else None,
        client_id=client_id,
        payment_method=method,
        amount_min=amount_min,
        amount_max=amount_max,
    )
    return filters, start, end


# =============================================================================
# Service
# =============================================================================


class ReportService:
    def __init__(self, db: Session):
        self._db = db
        self._invoices = get_invoice_repository(db)

    def _scoped(self, query: Select, tenant_id: int, filters: InvoiceFilters) -> Select:
        return apply_invoice_filters(query.where(Invoice.tenant_id == tenant_id), filters)

    def summary(
        self, tenant_id: int, filters: InvoiceFilters, start: date, end: date
    ) -> ReportSummary:
        count, total, average, minimum, maximum = self._aggregate(tenant_id, filters)
        return ReportSummary(
            date_from=start.isoformat(),
            date_to=end.isoformat(),
            count=count,
            total=total,
            average=average,
            min=minimum,
            max=maximum,
        )

    def invoice_stats(self, tenant_id: int, filters: InvoiceFilters) -> InvoiceStats:
        count, total, average, minimum, maximum = self._aggregate(tenant_id, filters)
        rows = self._db.execute(
            self._scoped(
                select(Invoice.payment_method, func.coalesce(func.sum(Invoice.total), 0)),
                tenant_id,
                filters,
            ).group_by(Invoice.payment_method)
        ).all()
        return InvoiceStats(
            count=count,
            total=total,
            avg=average,
            min=minimum,
            max=maximum,
            by_payment_method={method: Decimal(amount) for method, amount in rows},
        )

    def _aggregate(
        self, tenant_id: int, filters: InvoiceFilters
    ) -> tuple[int, Decimal, Decimal, Decimal, Decimal]:
        row = self._db.execute(
            self._scoped(
                select(
                    func.count(Invoice.id),
                    func.coalesce(func.sum(Invoice.total), 0),
                    func.coalesce(func.min(Invoice.total), 0),
                    func.coalesce(func.max(Invoice.total), 0),
                ),
                tenant_id,
                filters,
            )
        ).one()
        count, total, minimum, maximum = row
        total = Decimal(total)
        average = quantize_money(total / count) if count else ZERO
        return count, total, average, Decimal(minimum), Decimal(maximum)

    def payment_distribution(
        self, tenant_id: int, filters: InvoiceFilters
    ) -> list[PaymentDistributionRow]:
        """
        Totals per payment method from the payment rows. Invoices stored
        without payment rows count under their own payment_method.
        """
        split = self._db.execute(
            self._scoped(
                select(
                    InvoicePayment.method,
                    func.count(distinct(InvoicePayment.invoice_id)),
                    func.coalesce(func.sum(InvoicePayment.amount), 0),
                ).join(Invoice, Invoice.id == InvoicePayment.invoice_id),
                tenant_id,
                filters,
            ).group_by(InvoicePayment.method)
        ).all()

        has_payments = exists().where(InvoicePayment.invoice_id == Invoice.id)
        legacy = self._db.execute(
            self._scoped(
                select(
                    Invoice.payment_method,
                    func.count(Invoice.id),
                    func.coalesce(func.sum(Invoice.total), 0),
                ).where(~has_payments),
                tenant_id,
                filters,
            ).group_by(Invoice.payment_method)
        ).all()

        merged: dict[str, list] = {}
        for method, count, amount in [*split, *legacy]:
            entry = merged.setdefault(method, [0, ZERO])
            entry[0] += count
            entry[1] += Decimal(amount)

        rows = [
            PaymentDistributionRow(method=method, count=count, total=amount)
            for method, (count, amount) in merged.items()
        ]
        return sorted(rows, key=lambda r: r.total, reverse=True)

    def sales_by_day(self, tenant_id: int, filters: InvoiceFilters) -> list[SalesByDayRow]:
        day = func.date(Invoice.date)
        rows = self._db.execute(
            self._scoped(
                select(day, func.count(Invoice.id), func.coalesce(func.sum(Invoice.total), 0)),
                tenant_id,
                filters,
            )
            .group_by(day)
            .order_by(day)
        ).all()
        return [
            SalesByDayRow(date=str(value), count=count, total=Decimal(total))
            for value, count, total in rows
        ]

    def top_products(
        self, tenant_id: int, filters: InvoiceFilters, limit: int = Limits.DEFAULT_TOP_N
    ) -> list[TopProductOutput]:
        quantity = func.sum(InvoiceItem.quantity)
        rows = self._db.execute(
            self._scoped(
                select(
                    InvoiceItem.product_id,
                    func.max(InvoiceItem.product_name),
                    quantity,
                    func.sum(InvoiceItem.subtotal),
                    func.count(distinct(InvoiceItem.invoice_id)),
                ).join(Invoice, Invoice.id == InvoiceItem.invoice_id),
                tenant_id,
                filters,
            )
            .group_by(InvoiceItem.product_id)
            .order_by(quantity.desc(), InvoiceItem.product_id)
            .limit(limit)
        ).all()
        return [
            TopProductOutput(
                product_id=product_id,
                name=name,
                quantity=Decimal(qty),
                total=Decimal(total),
                invoices=invoices,
            )
            for product_id, name, qty, total, invoices in rows
        ]

    def top_clients(
        self, tenant_id: int, filters: InvoiceFilters, limit: int = Limits.DEFAULT_TOP_N
    ) -> list[TopClientOutput]:
        total_spent = func.coalesce(func.sum(Invoice.total), 0)
        rows = self._db.execute(
            self._scoped(
                select(Client.id, Client.name, func.count(Invoice.id), total_spent)
                .join(Client, Client.id == Invoice.client_id),
                tenant_id,
                filters,
            )
            .group_by(Client.id, Client.name)
            .order_by(total_spent.desc(), Client.id)
            .limit(limit)
        ).all()
        return [
            TopClientOutput(id=cid, name=name, invoices=count, total_spent=Decimal(total))
            for cid, name, count, total in rows
        ]

    # =========================================================================
    # Sales list and export
    # =========================================================================

    def sales_totals(self, tenant_id: int, filters: InvoiceFilters) -> SalesTotals:
        by_method = {row.method: row.total for row in self.payment_distribution(tenant_id, filters)}
        _, general, _, _, _ = self._aggregate(tenant_id, filters)
        return SalesTotals(
            efectivo=by_method.get(PaymentMethod.CASH, ZERO),
            transferencia=by_method.get(PaymentMethod.TRANSFER, ZERO),
            tarjeta=by_method.get(PaymentMethod.CARD, ZERO),
            general=general,
        )

    def sales(self, tenant_id: int, filters: InvoiceFilters, start: date, end: date) -> SalesOutput:
        invoices = self._invoices.find_all_unpaged(tenant_id, filters)
        return SalesOutput(
            items=[to_summary(i) for i in invoices],
            totals=self.sales_totals(tenant_id, filters),
            date_from=start.isoformat(),
            date_to=end.isoformat(),
        )

    def sales_export(self, tenant_id: int, filters: InvoiceFilters) -> bytes:
        invoices = self._invoices.find_all_unpaged(tenant_id, filters)
        content = build_sales_export(
            [to_summary(i) for i in invoices], self.sales_totals(tenant_id, filters)
        )
        logger.info("Sales exported", tenant_id=tenant_id, invoices=len(invoices))
        return content
