"""
Pydantic schemas for tenant administration, catalog and client endpoints.
Kept out of the routers so services can import them without cycles.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from pos_shared.utils.schemas import Money, PlanName, TenantRole, TenantStatusValue


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


# =============================================================================
# Tenant Schemas (superadmin)
# =============================================================================


class TenantOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    address: str | None = None
    phone: str | None = None
    tax_id: str | None = None
    email: str | None = None
    plan: str
    status: str
    created_at: datetime


class TenantWithStats(TenantOutput):
    users: int = 0
    products: int = 0
    invoices: int = 0
    total_sales: Money = Decimal("0")


class TenantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    slug: str = Field(min_length=2, max_length=60, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=20)
    tax_id: str | None = Field(default=None, max_length=30)
    email: EmailStr | None = None
    plan: PlanName = "basico"
    admin_name: str = Field(min_length=1, max_length=100)
    admin_email: EmailStr
    admin_password: str = Field(min_length=6, max_length=128)


class TenantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=20)
    tax_id: str | None = Field(default=None, max_length=30)
    email: EmailStr | None = None
    plan: PlanName | None = None
    status: TenantStatusValue | None = None


class TenantCreated(BaseModel):
    tenant: TenantOutput
    admin_user_id: int


class PasswordReset(BaseModel):
    password: str = Field(min_length=6, max_length=128)


# =============================================================================
# Plan Schemas
# =============================================================================


class PlanLimitOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plan: str
    max_users: int
    max_products: int
    max_tables: int
    max_invoices_per_month: int
    api_enabled: bool
    webhooks_enabled: bool


class PlanLimitUpdate(BaseModel):
    max_users: int | None = Field(default=None, ge=0)
    max_products: int | None = Field(default=None, ge=0)
    max_tables: int | None = Field(default=None, ge=0)
    max_invoices_per_month: int | None = Field(default=None, ge=0)
    api_enabled: bool | None = None
    webhooks_enabled: bool | None = None


class PlanUsageOutput(BaseModel):
    plan: str
    limits: PlanLimitOutput
    usage: dict[str, int]


# =============================================================================
# User Schemas
# =============================================================================


class UserOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int | None = None
    name: str
    email: str
    phone: str | None = None
    role: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: TenantRole
    phone: str | None = Field(default=None, max_length=20)


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(default=None, max_length=128)
    role: TenantRole | None = None
    phone: str | None = Field(default=None, max_length=20)
    is_active: bool | None = None


# =============================================================================
# Category Schemas
# =============================================================================


class CategoryOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    color: str
    icon: str
    sort_order: int
    is_active: bool


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    color: str = Field(default="#3498db", pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str = Field(default="bi-tag", max_length=50)
    sort_order: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El nombre es requerido")
        return value


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = Field(default=None, max_length=50)
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


# =============================================================================
# Product Schemas
# =============================================================================


class ProductOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    price_kg: Money
    price_unit: Money
    price_lb: Money
    is_active: bool


class ProductCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=150)
    description: str | None = Field(default=None, max_length=1000)
    category_id: int | None = None
    price_kg: Money = Field(default=Decimal("0"))
    price_unit: Money = Field(default=Decimal("0"))
    price_lb: Money = Field(default=Decimal("0"))

    @field_validator("code", "name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("no puede estar vacío")
        return value


class ProductUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=150)
    description: str | None = Field(default=None, max_length=1000)
    category_id: int | None = None
    price_kg: Money | None = None
    price_unit: Money | None = None
    price_lb: Money | None = None


class ProductImportRowError(BaseModel):
    row: int
    error: str


class ProductImportResult(BaseModel):
    inserted: int
    updated: int
    skipped: list[ProductImportRowError]


# =============================================================================
# Client Schemas
# =============================================================================


class ClientOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str | None = None
    address: str | None = None
    email: str | None = None
    tax_id: str | None = None
    created_at: datetime


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=500)
    email: EmailStr | None = None
    tax_id: str | None = Field(default=None, max_length=30)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El nombre es requerido")
        return value

    @field_validator("phone", "address", "tax_id")
    @classmethod
    def strip_optional(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=500)
    email: EmailStr | None = None
    tax_id: str | None = Field(default=None, max_length=30)

    @field_validator("phone", "address", "tax_id")
    @classmethod
    def strip_optional(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class TopClientOutput(BaseModel):
    id: int
    name: str
    invoices: int
    total_spent: Money


# =============================================================================
# API Token Schemas
# =============================================================================


class ApiTokenOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    token_prefix: str
    permissions: list[str]
    status: str
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    created_at: datetime


class ApiTokenCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    permissions: list[str] = Field(min_length=1)
    expires_in_days: int | None = Field(default=None, ge=1, le=3650)


class ApiTokenCreated(ApiTokenOutput):
    token: str  # Plaintext, shown only once
