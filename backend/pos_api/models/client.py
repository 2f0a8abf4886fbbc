"""
Client model: the customer an invoice is issued to.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import AuditMixin, Base, IdType


class Client(AuditMixin, Base):
    __tablename__ = "client"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("tenant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    address: Mapped[Optional[str]] = mapped_column(String(500))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    tax_id: Mapped[Optional[str]] = mapped_column(String(30))

    __table_args__ = (
        Index("ix_client_tenant_name", "tenant_id", "name"),
        Index("ix_client_tenant_phone", "tenant_id", "phone"),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.name}')>"
