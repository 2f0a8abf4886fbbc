"""
User model: restaurant staff and the platform superadmin.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, IdType

if TYPE_CHECKING:
    from .tenant import Tenant


class User(AuditMixin, Base):
    """
    Staff member. tenant_id is NULL only for the superadmin.
    Email is unique across the whole platform (it is the login).
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    tenant: Mapped[Optional["Tenant"]] = relationship(back_populates="users")

    __table_args__ = (
        CheckConstraint(
            "role IN ('superadmin', 'admin', 'cajero', 'mesero', 'cocina')",
            name="ck_user_role",
        ),
        # Only the superadmin lives outside a tenant
        CheckConstraint(
            "(role = 'superadmin') OR (tenant_id IS NOT NULL)",
            name="ck_user_tenant_required",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
