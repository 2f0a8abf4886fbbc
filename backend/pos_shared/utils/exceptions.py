"""
Centralized HTTP exceptions for consistent error handling.

Every exception logs itself on construction with the given context, so
services can simply raise.

Usage:
    from pos_shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Producto", product_id, tenant_id=tenant_id)
    raise ValidationError("La cantidad debe ser mayor a 0", field="quantity")
"""

from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status

from pos_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    `detail` may be a string or a JSON-serializable dict; dicts are
    returned as-is under the "detail" key.
    """

    def __init__(
        self,
        status_code: int,
        detail: str | dict[str, Any],
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        message = detail if isinstance(detail, str) else str(detail.get("error", detail))
        log_fn(message, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 Unauthorized
# =============================================================================


class AuthenticationError(AppException):
    """Missing or invalid credentials (401)."""

    def __init__(self, detail: str = "No autenticado", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Cliente", 123)
        raise NotFoundError("Mesa", table_id, tenant_id=tenant_id)
    """

    def __init__(
        self,
        entity: str,
        entity_id: int | str | None = None,
        detail: str | None = None,
        **log_context: Any,
    ):
        if detail is None:
            if entity_id is not None:
                detail = f"{entity} con ID {entity_id} no encontrado"
            else:
                detail = f"{entity} no encontrado"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("eliminar productos")
        raise ForbiddenError(detail="Usuario inactivo")
    """

    def __init__(self, action: str | None = None, detail: str | None = None, **log_context: Any):
        if detail is None:
            detail = f"No autorizado para {action}" if action else "Acceso denegado"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(sorted(required_roles))
        super().__init__(
            f"realizar esta acción (requiere rol: {roles_str})",
            required_roles=required_roles,
            **log_context,
        )


class ApiPermissionError(AppException):
    """
    Integration token lacks a permission (403).

    Response detail:
        {"error": "Permiso denegado", "required_permission": ...}
    """

    def __init__(self, required_permission: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Permiso denegado", "required_permission": required_permission},
            log_level="warning",
            required_permission=required_permission,
            **log_context,
        )


class PlanLimitExceededError(AppException):
    """
    Tenant reached a plan limit (403).

    Response detail:
        {"error": ..., "limit": N, "current": M, "message": ...}
    """

    def __init__(
        self,
        resource_label: str,
        plan: str,
        limit: int,
        current: int,
        message: str | None = None,
        **log_context: Any,
    ):
        detail = {
            "error": f"Límite de {resource_label} alcanzado",
            "limit": limit,
            "current": current,
            "message": message or (
                f"Tu plan {plan} permite hasta {limit} {resource_label}. "
                "Actualiza tu plan para agregar más."
            ),
        }
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="info",
            plan=plan,
            limit=limit,
            current=current,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("El precio debe ser mayor o igual a 0")
        raise ValidationError("Cantidad inválida", field="quantity", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidStateError(ValidationError):
    """Entity is in an invalid state for the operation."""

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        **log_context: Any,
    ):
        if expected_states:
            states_str = ", ".join(expected_states)
            detail = f"{entity} está en estado '{current_state}', se esperaba: {states_str}"
        else:
            detail = f"{entity} no puede estar en estado '{current_state}' para esta operación"

        super().__init__(detail, entity=entity, current_state=current_state, **log_context)


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Transición inválida de '{from_status}' a '{to_status}' para {entity}"
        super().__init__(
            detail, entity=entity, from_status=from_status, to_status=to_status, **log_context
        )


class DuplicateEntityError(ValidationError):
    """Entity already exists."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} con identificador '{identifier}' ya existe"
        else:
            detail = f"{entity} ya existe"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


class PaymentAmountError(ValidationError):
    """Payment split does not add up."""

    def __init__(self, detail: str, expected: Decimal, received: Decimal, **log_context: Any):
        super().__init__(detail, expected=str(expected), received=str(received), **log_context)
