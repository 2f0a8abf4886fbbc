"""
Catalog Models: Category, Product.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_shared.config.constants import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON

from .base import AuditMixin, Base, IdType, MoneyType

if TYPE_CHECKING:
    from .tenant import Tenant


class Category(AuditMixin, Base):
    """Product category, listed by sort_order then name."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(7), default=DEFAULT_CATEGORY_COLOR, nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default=DEFAULT_CATEGORY_ICON, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    products: Mapped[list["Product"]] = relationship(back_populates="category")

    __table_args__ = (
        Index("ix_category_tenant_order", "tenant_id", "sort_order", "name"),
    )


class Product(AuditMixin, Base):
    """
    Sellable item with one price per unit of measure (kg, unit, pound).
    A price of 0 means the product is not sold in that unit.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("category.id"), nullable=True, index=True
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price_kg: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    price_unit: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    price_lb: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    tenant: Mapped["Tenant"] = relationship()
    category: Mapped[Optional["Category"]] = relationship(back_populates="products")

    __table_args__ = (
        CheckConstraint(
            "price_kg >= 0 AND price_unit >= 0 AND price_lb >= 0",
            name="ck_product_prices_non_negative",
        ),
        # Codes can be reused once the old product is soft-deleted
        Index(
            "uq_product_tenant_code_active",
            "tenant_id",
            "code",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("ix_product_tenant_name", "tenant_id", "name"),
    )

    def price_for(self, unit_field: str) -> Decimal:
        return getattr(self, unit_field) or Decimal("0")

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, code='{self.code}')>"
