"""
Multi-Tenancy Models: Tenant (restaurant) and PlanLimit.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_shared.config.constants import Plans, TenantStatus

from .base import AuditMixin, Base, IdType

if TYPE_CHECKING:
    from .user import User


class Tenant(AuditMixin, Base):
    """
    A restaurant. Every business row belongs to exactly one tenant and
    every tenant-scoped query filters by it.
    """

    __tablename__ = "tenant"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    slug: Mapped[str] = mapped_column(String(60), unique=True, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500))
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    tax_id: Mapped[Optional[str]] = mapped_column(String(30))  # NIT
    email: Mapped[Optional[str]] = mapped_column(String(255))
    plan: Mapped[str] = mapped_column(String(20), default=Plans.BASIC, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TenantStatus.ACTIVE, nullable=False, index=True
    )

    users: Mapped[list["User"]] = relationship(back_populates="tenant")

    __table_args__ = (
        CheckConstraint(
            "status IN ('activo', 'suspendido', 'inactivo')", name="ck_tenant_status"
        ),
    )

    @property
    def is_operational(self) -> bool:
        return self.is_active and self.status == TenantStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug='{self.slug}', plan='{self.plan}')>"


class PlanLimit(Base):
    """
    Limits per subscription plan, editable by the superadmin.
    Seeded on startup for the three plans.
    """

    __tablename__ = "plan_limit"

    plan: Mapped[str] = mapped_column(String(20), primary_key=True)
    max_users: Mapped[int] = mapped_column(Integer, nullable=False)
    max_products: Mapped[int] = mapped_column(Integer, nullable=False)
    max_tables: Mapped[int] = mapped_column(Integer, nullable=False)
    max_invoices_per_month: Mapped[int] = mapped_column(Integer, nullable=False)
    api_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    webhooks_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<PlanLimit(plan='{self.plan}')>"
