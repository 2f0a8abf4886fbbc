"""
Domain Services - Business logic layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  <- here
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from pos_api.services.domain import ProductService

    service = ProductService(db)
    products = service.list_products(tenant_id, filters)
"""

from .api_token_service import ApiTokenContext, ApiTokenService
from .auth_service import AuthService
from .category_service import CategoryService
from .client_service import ClientService
from .invoice_service import InvoiceService
from .kitchen_service import KitchenService
from .plan_limit_service import PlanLimitService
from .product_service import ProductService
from .report_service import ReportService
from .table_service import TableService
from .tenant_service import TenantService
from .user_service import UserService

__all__ = [
    "ApiTokenContext",
    "ApiTokenService",
    "AuthService",
    "CategoryService",
    "ClientService",
    "InvoiceService",
    "KitchenService",
    "PlanLimitService",
    "ProductService",
    "ReportService",
    "TableService",
    "TenantService",
    "UserService",
]
