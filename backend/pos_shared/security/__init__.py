"""
Security module: JWT auth, password hashing, rate limiting and API tokens.
"""

from pos_shared.security.auth import (
    current_user_context,
    get_bearer_token,
    get_user_email,
    get_user_id,
    require_roles,
    require_superadmin,
    require_tenant,
    sign_jwt,
    verify_jwt,
)
from pos_shared.security.password import hash_password, verify_password
from pos_shared.security.rate_limit import (
    LOGIN_RATE_LIMIT,
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "current_user_context",
    "get_bearer_token",
    "get_user_email",
    "get_user_id",
    "require_roles",
    "require_superadmin",
    "require_tenant",
    "sign_jwt",
    "verify_jwt",
    "hash_password",
    "verify_password",
    "LOGIN_RATE_LIMIT",
    "limiter",
    "rate_limit_exceeded_handler",
]
