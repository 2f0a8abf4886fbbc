"""
Floor Models: DiningTable, Order, OrderItem.

Order items flow pendiente -> enviado -> preparando -> listo -> servido.
Only enviado/preparando/listo items are visible to the kitchen, so nothing
reaches the kitchen without being sent first.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_shared.config.constants import ItemStatus, OrderStatus, TableStatus

from .base import AuditMixin, Base, IdType, MoneyType, QuantityType, utcnow

if TYPE_CHECKING:
    from .catalog import Product


class DiningTable(AuditMixin, Base):
    __tablename__ = "dining_table"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default=TableStatus.FREE, nullable=False)

    orders: Mapped[list["Order"]] = relationship(back_populates="table")

    __table_args__ = (
        CheckConstraint(
            "status IN ('libre', 'ocupada', 'reservada')", name="ck_dining_table_status"
        ),
        Index(
            "uq_dining_table_tenant_number_active",
            "tenant_id",
            "number",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    def __repr__(self) -> str:
        return f"<DiningTable(id={self.id}, number={self.number}, status='{self.status}')>"


class Order(AuditMixin, Base):
    """
    A tab. Table orders are opened from the floor; counter orders
    (table_id NULL) are created when an invoice sends items to the kitchen.
    """

    __tablename__ = "dining_order"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    table_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("dining_table.id"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=OrderStatus.OPEN, nullable=False, index=True
    )
    invoice_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("invoice.id"), nullable=True, index=True
    )
    opened_by_id: Mapped[Optional[int]] = mapped_column(IdType, ForeignKey("app_user.id"))
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    table: Mapped[Optional["DiningTable"]] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('abierto', 'cerrado', 'facturado')", name="ck_dining_order_status"
        ),
    )

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0"))

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, table_id={self.table_id}, status='{self.status}')>"


class OrderItem(Base):
    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    # Denormalized so kitchen UPDATEs can scope by tenant without a join
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    order_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("dining_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(IdType, ForeignKey("product.id"))
    product_name: Mapped[str] = mapped_column(String(150), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    unit: Mapped[str] = mapped_column(String(3), nullable=False)
    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default=ItemStatus.PENDING, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    preparing_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    ready_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    served_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped[Optional["Product"]] = relationship()

    __table_args__ = (
        CheckConstraint(
            "status IN ('pendiente', 'enviado', 'preparando', 'listo', 'servido')",
            name="ck_order_item_status",
        ),
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
        # Kitchen queue: tenant + status, ordered by send time
        Index("ix_order_item_kitchen", "tenant_id", "status", "sent_at"),
    )

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, status='{self.status}')>"
