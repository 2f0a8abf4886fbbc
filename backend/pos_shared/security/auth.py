"""
Authentication and authorization utilities for staff JWTs.

Access tokens carry:
    sub        user id (string)
    tenant_id  restaurant id, None for the superadmin
    role       single role name
    roles      [role], so role checks work as set intersections
    email
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header

from pos_shared.config.constants import ErrorMessages, Roles
from pos_shared.config.logging import auth_logger as logger
from pos_shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from pos_shared.utils.exceptions import AuthenticationError, ForbiddenError, InsufficientRoleError


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
    token_type: str = "access",
) -> str:
    """
    Sign a JWT with the standard claims added (iss, aud, iat, exp, type, jti).

    Args:
        payload: Claims to include (sub, tenant_id, role, email...).
        ttl_seconds: Token lifetime. Defaults to the access token expiry.
        token_type: Token type claim.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expirado")
    except jwt.InvalidTokenError as e:
        # Real reason goes to the log, the client gets the generic message
        logger.warning("JWT validation failed", error=str(e))
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)

    if payload.get("type") != "access":
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED, reason="token_type")

    try:
        int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED, reason="malformed_sub")

    if "tenant_id" not in payload or "role" not in payload:
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED, reason="missing_claims")

    tenant_id = payload["tenant_id"]
    if tenant_id is not None and not isinstance(tenant_id, int):
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED, reason="malformed_tenant")

    payload.setdefault("roles", [payload["role"]])
    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract the bearer token from an Authorization header.

    Raises:
        AuthenticationError: If the header is missing or malformed.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)
    return token


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency with the current user context from the JWT.

    Usage:
        @router.get("/products")
        def list_products(ctx: dict = Depends(current_user_context)):
            tenant_id = require_tenant(ctx)
            ...
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)


# =============================================================================
# Authorization Helpers
# =============================================================================


def require_roles(ctx: dict[str, Any], allowed: list[str] | frozenset[str]) -> None:
    """
    Verify that the user has at least one of the allowed roles.

    Raises:
        InsufficientRoleError: 403 if no role matches.
    """
    user_roles = set(ctx.get("roles", []))
    if not user_roles.intersection(set(allowed)):
        raise InsufficientRoleError(list(allowed), user_id=ctx.get("sub"))


def require_superadmin(ctx: dict[str, Any]) -> None:
    require_roles(ctx, [Roles.SUPERADMIN])


def require_tenant(ctx: dict[str, Any]) -> int:
    """
    Return the tenant id of the context.

    Raises:
        ForbiddenError: 403 for contexts without a tenant (the superadmin).
    """
    tenant_id = ctx.get("tenant_id")
    if tenant_id is None:
        raise ForbiddenError(detail=ErrorMessages.NO_TENANT, user_id=ctx.get("sub"))
    return tenant_id


def get_user_id(ctx: dict[str, Any]) -> int:
    return int(ctx["sub"])


def get_user_email(ctx: dict[str, Any]) -> str:
    return ctx.get("email", "")
