"""
Invoice Repository - Read side of invoices.
Writes go through InvoiceService, which owns the transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, joinedload, selectinload

from pos_api.models import Client, Invoice
from .base import BaseRepository, RepositoryFilters


@dataclass
class InvoiceFilters(RepositoryFilters):
    """
    Invoice filters. Dates are half-open: date_from <= date < date_to.
    `search` matches the client name.
    """

    date_from: datetime | None = None
    date_to: datetime | None = None
    client_id: int | None = None
    payment_method: str | None = None
    amount_min: Decimal | None = None
    amount_max: Decimal | None = None


class InvoiceRepository(BaseRepository[Invoice]):
    """Invoices load their client eagerly; items and payments on detail only."""

    @property
    def model(self) -> type[Invoice]:
        return Invoice

    def _base_query(self, tenant_id: int) -> Select:
        return (
            select(Invoice)
            .where(Invoice.tenant_id == tenant_id)
            .options(joinedload(Invoice.client))
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return apply_invoice_filters(query, filters)

    def _ordering(self) -> list:
        return [Invoice.date.desc(), Invoice.id.desc()]

    def find_detail(self, invoice_id: int, tenant_id: int) -> Invoice | None:
        query = (
            self._base_query(tenant_id)
            .where(Invoice.id == invoice_id)
            .options(selectinload(Invoice.items), selectinload(Invoice.payments))
        )
        return self._db.execute(query).scalars().unique().first()

    def find_all_unpaged(self, tenant_id: int, filters: InvoiceFilters) -> Sequence[Invoice]:
        """All matching invoices, for exports and sales totals."""
        query = self._filtered(self._base_query(tenant_id), filters).order_by(*self._ordering())
        return self._db.execute(query).scalars().unique().all()


def apply_invoice_filters(query: Select, filters: RepositoryFilters) -> Select:
    """
    WHERE clauses shared by invoice listings and the report aggregates.
    Works on any select that has Invoice in its FROM.
    """
    if not isinstance(filters, InvoiceFilters):
        return query

    if filters.date_from is not None:
        query = query.where(Invoice.date >= filters.date_from)
    if filters.date_to is not None:
        query = query.where(Invoice.date < filters.date_to)
    if filters.client_id:
        query = query.where(Invoice.client_id == filters.client_id)
    if filters.payment_method:
        query = query.where(Invoice.payment_method == filters.payment_method)
    if filters.amount_min is not None:
        query = query.where(Invoice.total >= filters.amount_min)
    if filters.amount_max is not None:
        query = query.where(Invoice.total <= filters.amount_max)
    if filters.search_pattern:
        matching_clients = select(Client.id).correlate(None).where(
            Client.name.ilike(filters.search_pattern, escape="\\")
        )
        query = query.where(Invoice.client_id.in_(matching_clients))

    return query


def get_invoice_repository(db: Session) -> InvoiceRepository:
    return InvoiceRepository(db)
