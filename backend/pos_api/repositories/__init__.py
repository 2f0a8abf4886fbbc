"""
Repository Pattern implementation.
Centralizes tenant-scoped data access with eager loading.

Usage:
    from pos_api.repositories import ProductFilters, get_product_repository

    repo = get_product_repository(db)
    products = repo.find_all(tenant_id=1, filters=ProductFilters(category_id=5))
    product = repo.find_by_id(123, tenant_id=1)
"""

from .base import BaseRepository, RepositoryFilters
from .catalog import (
    CategoryFilters,
    CategoryRepository,
    ProductFilters,
    ProductRepository,
    get_category_repository,
    get_product_repository,
)
from .client import ClientFilters, ClientRepository, get_client_repository
from .invoice import (
    InvoiceFilters,
    InvoiceRepository,
    apply_invoice_filters,
    get_invoice_repository,
)
from .table import (
    DiningTableRepository,
    OrderRepository,
    get_order_repository,
    get_table_repository,
)
from .user import UserFilters, UserRepository, get_user_repository

__all__ = [
    # Base
    "BaseRepository",
    "RepositoryFilters",
    # Catalog
    "CategoryFilters",
    "CategoryRepository",
    "ProductFilters",
    "ProductRepository",
    "get_category_repository",
    "get_product_repository",
    # Clients
    "ClientFilters",
    "ClientRepository",
    "get_client_repository",
    # Invoices
    "InvoiceFilters",
    "InvoiceRepository",
    "apply_invoice_filters",
    "get_invoice_repository",
    # Floor
    "DiningTableRepository",
    "OrderRepository",
    "get_order_repository",
    "get_table_repository",
    # Users
    "UserFilters",
    "UserRepository",
    "get_user_repository",
]
