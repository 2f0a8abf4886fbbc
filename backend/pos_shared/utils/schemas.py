"""
Shared Pydantic schemas and field types used across the application.
"""

from decimal import Decimal
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, EmailStr, Field, PlainSerializer


# =============================================================================
# Common Types
# =============================================================================

# Decimals travel as JSON numbers (the POS front-ends do arithmetic on them)
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

Role = Literal["superadmin", "admin", "cajero", "mesero", "cocina"]
TenantRole = Literal["admin", "cajero", "mesero", "cocina"]
PlanName = Literal["basico", "profesional", "empresarial"]
TenantStatusValue = Literal["activo", "suspendido", "inactivo"]
UnitValue = Literal["KG", "UND", "LB"]
TableStatusValue = Literal["libre", "ocupada", "reservada"]
ItemStatusValue = Literal["pendiente", "enviado", "preparando", "listo", "servido"]


# =============================================================================
# Generic Responses
# =============================================================================


class PaginationInfo(BaseModel):
    """Pagination metadata."""

    limit: int
    offset: int
    total: int | None = None


ItemT = TypeVar("ItemT")


class Page(BaseModel, Generic[ItemT]):
    """A page of results with its pagination metadata."""

    items: list[ItemT]
    pagination: PaginationInfo


class ApiEnvelope(BaseModel, Generic[ItemT]):
    """Response shape of the public integration API."""

    success: bool = True
    data: ItemT
    pagination: PaginationInfo | None = None


class DeleteResponse(BaseModel):
    """Response for delete operations."""

    success: bool = True
    id: int


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserInfo(BaseModel):
    """Basic user information included in auth responses."""

    id: int
    email: str
    name: str
    role: str
    tenant_id: int | None = None
    tenant_name: str | None = None


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserInfo
