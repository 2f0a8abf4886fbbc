"""
SQLAlchemy ORM models.

Import from here so every table is registered on Base.metadata:

    from pos_api.models import Base, Invoice, OrderItem
"""

from .base import AuditMixin, Base, IdType, MoneyType, QuantityType, utcnow
from .tenant import PlanLimit, Tenant
from .user import User
from .catalog import Category, Product
from .client import Client
from .invoice import Invoice, InvoiceItem, InvoicePayment
from .table import DiningTable, Order, OrderItem
from .api_token import ApiToken

__all__ = [
    "AuditMixin",
    "Base",
    "IdType",
    "MoneyType",
    "QuantityType",
    "utcnow",
    "PlanLimit",
    "Tenant",
    "User",
    "Category",
    "Product",
    "Client",
    "Invoice",
    "InvoiceItem",
    "InvoicePayment",
    "DiningTable",
    "Order",
    "OrderItem",
    "ApiToken",
]
