"""
Billing Models: Invoice, InvoiceItem, InvoicePayment.

An invoice is immutable once written. Line items snapshot the product
name and price so later catalog edits never change issued invoices.
Invariant: total == sum(items.subtotal) == sum(payments.amount), within
one cent.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType, MoneyType, QuantityType, utcnow

if TYPE_CHECKING:
    from .client import Client


class Invoice(AuditMixin, Base):
    __tablename__ = "invoice"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    client_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("client.id"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(IdType, ForeignKey("app_user.id"))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    total: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    # efectivo | transferencia | tarjeta | mixto
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    # Table order this invoice closed; the link back lives on dining_order.invoice_id
    order_id: Mapped[Optional[int]] = mapped_column(IdType, index=True)

    client: Mapped["Client"] = relationship()
    items: Mapped[list["InvoiceItem"]] = relationship(
        back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.id"
    )
    payments: Mapped[list["InvoicePayment"]] = relationship(
        back_populates="invoice", cascade="all, delete-orphan", order_by="InvoicePayment.id"
    )

    __table_args__ = (
        CheckConstraint("total > 0", name="ck_invoice_total_positive"),
        CheckConstraint(
            "payment_method IN ('efectivo', 'transferencia', 'tarjeta', 'mixto')",
            name="ck_invoice_payment_method",
        ),
        Index("ix_invoice_tenant_date", "tenant_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, total={self.total}, method='{self.payment_method}')>"


class InvoiceItem(Base):
    __tablename__ = "invoice_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    invoice_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("invoice.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("product.id"), nullable=True, index=True
    )
    product_name: Mapped[str] = mapped_column(String(150), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    unit: Mapped[str] = mapped_column(String(3), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    invoice: Mapped["Invoice"] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_invoice_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_invoice_item_price_non_negative"),
        CheckConstraint("unit IN ('KG', 'UND', 'LB')", name="ck_invoice_item_unit"),
    )


class InvoicePayment(Base):
    """One payment towards an invoice. Several rows make a mixed payment."""

    __tablename__ = "invoice_payment"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    invoice_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("invoice.id", ondelete="CASCADE"), nullable=False, index=True
    )
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    invoice: Mapped["Invoice"] = relationship(back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_payment_amount_positive"),
        CheckConstraint(
            "method IN ('efectivo', 'transferencia', 'tarjeta')",
            name="ck_invoice_payment_method",
        ),
    )
