"""
Auth Service - Staff login and current user lookup.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from pos_api.models import User, utcnow
from pos_api.repositories import get_user_repository
from pos_shared.config.constants import ErrorMessages, Roles
from pos_shared.config.logging import auth_logger as logger, mask_email
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import safe_commit
from pos_shared.security.auth import sign_jwt
from pos_shared.security.password import verify_password
from pos_shared.utils.exceptions import AuthenticationError, ForbiddenError
from pos_shared.utils.schemas import LoginResponse, UserInfo


def user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        tenant_id=user.tenant_id,
        tenant_name=user.tenant.name if user.tenant else None,
    )


class AuthService:
    def __init__(self, db: Session):
        self._db = db
        self._users = get_user_repository(db)

    def login(self, email: str, password: str) -> LoginResponse:
        """
        Check credentials and issue an access token.

        Unknown email and wrong password share one message so the
        endpoint cannot be used to probe accounts.
        """
        user = self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Login failed", email=mask_email(email))
            raise AuthenticationError(ErrorMessages.INVALID_CREDENTIALS)

        if not user.is_active:
            raise ForbiddenError(detail=ErrorMessages.INACTIVE_USER, user_id=user.id)

        if user.role != Roles.SUPERADMIN:
            if user.tenant is None or not user.tenant.is_operational:
                raise ForbiddenError(
                    detail=ErrorMessages.TENANT_SUSPENDED,
                    user_id=user.id,
                    tenant_id=user.tenant_id,
                )

        user.last_login_at = utcnow()
        safe_commit(self._db)

        ttl_seconds = settings.jwt_access_token_expire_minutes * 60
        token = sign_jwt(
            {
                "sub": str(user.id),
                "tenant_id": user.tenant_id,
                "role": user.role,
                "roles": [user.role],
                "email": user.email,
            },
            ttl_seconds=ttl_seconds,
        )

        logger.info("Login ok", user_id=user.id, tenant_id=user.tenant_id, role=user.role)
        return LoginResponse(access_token=token, expires_in=ttl_seconds, user=user_info(user))

    def me(self, ctx: dict[str, Any]) -> UserInfo:
        user = self._users.find_by_id_global(int(ctx["sub"]))
        if user is None or not user.is_active:
            raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)
        return user_info(user)
