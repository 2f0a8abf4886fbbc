"""
Centralized constants for the POS backend.
Avoids magic strings for roles, states, payment methods and units.

Usage:
    from pos_shared.config.constants import Roles, ItemStatus, PaymentMethod

    if ctx["role"] in MANAGEMENT_ROLES:
        ...

    if item.status == ItemStatus.SENT:
        ...
"""

from decimal import Decimal
from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants (stored lowercase, as issued in JWT claims)."""

    SUPERADMIN: Final[str] = "superadmin"
    ADMIN: Final[str] = "admin"
    CASHIER: Final[str] = "cajero"
    WAITER: Final[str] = "mesero"
    KITCHEN: Final[str] = "cocina"

    # Roles a tenant admin may assign
    TENANT_ROLES: Final[list[str]] = [ADMIN, CASHIER, WAITER, KITCHEN]
    ALL: Final[list[str]] = [SUPERADMIN, ADMIN, CASHIER, WAITER, KITCHEN]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN})
BILLING_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.CASHIER})
FLOOR_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.CASHIER, Roles.WAITER})
KITCHEN_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.KITCHEN})
ALL_STAFF_ROLES: Final[frozenset[str]] = frozenset(Roles.TENANT_ROLES)


# =============================================================================
# Tenants and Plans
# =============================================================================


class TenantStatus:
    """Restaurant (tenant) lifecycle states."""

    ACTIVE: Final[str] = "activo"
    SUSPENDED: Final[str] = "suspendido"
    INACTIVE: Final[str] = "inactivo"

    ALL: Final[list[str]] = [ACTIVE, SUSPENDED, INACTIVE]


class Plans:
    """Subscription plans."""

    BASIC: Final[str] = "basico"
    PROFESSIONAL: Final[str] = "profesional"
    ENTERPRISE: Final[str] = "empresarial"

    ALL: Final[list[str]] = [BASIC, PROFESSIONAL, ENTERPRISE]


class PlanResource:
    """Countable resources limited by plan."""

    USERS: Final[str] = "users"
    PRODUCTS: Final[str] = "products"
    TABLES: Final[str] = "tables"
    INVOICES: Final[str] = "invoices"


# Limits applied when a plan row is missing
DEFAULT_PLAN_LIMITS: Final[dict[str, int | bool]] = {
    "max_users": 3,
    "max_products": 50,
    "max_tables": 5,
    "max_invoices_per_month": 200,
    "api_enabled": False,
    "webhooks_enabled": False,
}

# Rows seeded into plan_limit on startup
SEED_PLAN_LIMITS: Final[dict[str, dict[str, int | bool]]] = {
    Plans.BASIC: dict(DEFAULT_PLAN_LIMITS),
    Plans.PROFESSIONAL: {
        "max_users": 10,
        "max_products": 500,
        "max_tables": 20,
        "max_invoices_per_month": 2000,
        "api_enabled": True,
        "webhooks_enabled": False,
    },
    Plans.ENTERPRISE: {
        "max_users": 50,
        "max_products": 10000,
        "max_tables": 100,
        "max_invoices_per_month": 50000,
        "api_enabled": True,
        "webhooks_enabled": True,
    },
}


# =============================================================================
# Billing
# =============================================================================


class PaymentMethod:
    """Payment methods for invoices and payment splits."""

    CASH: Final[str] = "efectivo"
    TRANSFER: Final[str] = "transferencia"
    CARD: Final[str] = "tarjeta"
    MIXED: Final[str] = "mixto"  # Invoice-level only: more than one payment

    SPLIT_METHODS: Final[list[str]] = [CASH, TRANSFER, CARD]
    INVOICE_METHODS: Final[list[str]] = [CASH, TRANSFER, CARD, MIXED]


class Unit:
    """Units of measure a product can be sold in."""

    KG: Final[str] = "KG"
    UNIT: Final[str] = "UND"
    LB: Final[str] = "LB"

    ALL: Final[list[str]] = [KG, UNIT, LB]


# Product price column per unit of measure
UNIT_PRICE_FIELD: Final[dict[str, str]] = {
    Unit.KG: "price_kg",
    Unit.UNIT: "price_unit",
    Unit.LB: "price_lb",
}

# One cent of tolerance for money comparisons
MONEY_TOLERANCE: Final[Decimal] = Decimal("0.01")


# =============================================================================
# Tables and Orders
# =============================================================================


class TableStatus:
    """Dining table states."""

    FREE: Final[str] = "libre"
    OCCUPIED: Final[str] = "ocupada"
    RESERVED: Final[str] = "reservada"

    ALL: Final[list[str]] = [FREE, OCCUPIED, RESERVED]


class OrderStatus:
    """Order (table tab) states."""

    OPEN: Final[str] = "abierto"
    CLOSED: Final[str] = "cerrado"
    INVOICED: Final[str] = "facturado"


class ItemStatus:
    """Order item states, in kitchen flow order."""

    PENDING: Final[str] = "pendiente"
    SENT: Final[str] = "enviado"
    PREPARING: Final[str] = "preparando"
    READY: Final[str] = "listo"
    SERVED: Final[str] = "servido"

    ALL: Final[list[str]] = [PENDING, SENT, PREPARING, READY, SERVED]
    # Visible on the kitchen board
    KITCHEN_VISIBLE: Final[list[str]] = [SENT, PREPARING, READY]
    # States the kitchen may move an item out of
    KITCHEN_WORKABLE: Final[list[str]] = [SENT, PREPARING]
    # Targets the kitchen may set
    KITCHEN_TARGETS: Final[list[str]] = [PREPARING, READY]


# =============================================================================
# Public API
# =============================================================================


class ApiPermission:
    """Permissions grantable to integration API tokens."""

    PRODUCTS_READ: Final[str] = "productos:read"
    PRODUCTS_WRITE: Final[str] = "productos:write"
    INVOICES_READ: Final[str] = "facturas:read"
    CLIENTS_READ: Final[str] = "clientes:read"
    CLIENTS_WRITE: Final[str] = "clientes:write"

    ALL: Final[list[str]] = [
        PRODUCTS_READ, PRODUCTS_WRITE, INVOICES_READ, CLIENTS_READ, CLIENTS_WRITE
    ]


class ApiTokenStatus:
    """API token lifecycle states."""

    ACTIVE: Final[str] = "activo"
    REVOKED: Final[str] = "revocado"
    EXPIRED: Final[str] = "expirado"


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    # String lengths
    MAX_CODE_LENGTH: Final[int] = 50
    MAX_DESCRIPTION_LENGTH: Final[int] = 1000
    MAX_SEARCH_TERM_LENGTH: Final[int] = 100
    MIN_PASSWORD_LENGTH: Final[int] = 6

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200
    SEARCH_RESULTS: Final[int] = 20

    # Reports
    DEFAULT_REPORT_DAYS: Final[int] = 30
    DEFAULT_TOP_N: Final[int] = 10


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_CATEGORY_COLOR: Final[str] = "#3498db"
DEFAULT_CATEGORY_ICON: Final[str] = "bi-tag"


# =============================================================================
# Error Messages (Spanish)
# =============================================================================


class ErrorMessages:
    """Standardized error messages in Spanish."""

    NOT_AUTHENTICATED: Final[str] = "No autenticado"
    INVALID_CREDENTIALS: Final[str] = "Credenciales inválidas"
    INACTIVE_USER: Final[str] = "Usuario inactivo"
    TENANT_SUSPENDED: Final[str] = "Restaurante suspendido o inactivo"
    NO_TENANT: Final[str] = "Acceso denegado: usuario sin restaurante asignado"

    INVALID_STATUS: Final[str] = "Estado inválido"
    KITCHEN_ITEM_NOT_UPDATABLE: Final[str] = "Item no encontrado o en estado no válido"

    NO_PRODUCTS: Final[str] = "Debe incluir al menos un producto"
    TOTAL_MISMATCH: Final[str] = "El total no coincide con la suma de los productos"
    INVALID_TOTAL: Final[str] = "Total inválido"
    PAYMENTS_MISMATCH: Final[str] = "La suma de pagos no coincide con el total"
    NO_VALID_PAYMENTS: Final[str] = "Debe indicar al menos un pago válido"
    EMPTY_ORDER: Final[str] = "El pedido no tiene productos"
    TARGET_TABLE_NOT_FREE: Final[str] = "La mesa destino no está libre"
    TABLE_HAS_KITCHEN_ITEMS: Final[str] = "La mesa tiene productos pendientes en cocina"

    DUPLICATE_RECORD: Final[str] = "Ya existe un registro con esos datos"
    FK_VIOLATION: Final[str] = "No se puede eliminar porque tiene registros relacionados"
    DB_UNAVAILABLE: Final[str] = "Base de datos no disponible"
    INTERNAL: Final[str] = "Error interno del servidor"
