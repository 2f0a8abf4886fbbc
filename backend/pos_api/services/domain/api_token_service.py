"""
API Token Service - Credentials for the public integration API.

Tenant admins create tokens with a set of permissions and an optional
expiry. The plaintext is returned once; only its SHA-256 is stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_api.models import ApiToken, Tenant, utcnow
from pos_api.services.domain.plan_limit_service import PlanLimitService
from pos_shared.config.constants import ApiPermission, ApiTokenStatus, ErrorMessages
from pos_shared.config.logging import auth_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.security.api_tokens import display_prefix, generate_api_token, hash_api_token
from pos_shared.utils.admin_schemas import ApiTokenCreate, ApiTokenCreated, ApiTokenOutput
from pos_shared.utils.exceptions import (
    ApiPermissionError,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


@dataclass
class ApiTokenContext:
    """Identity of an authenticated integration call."""

    token_id: int
    tenant_id: int
    tenant_name: str
    plan: str
    permissions: list[str] = field(default_factory=list)

    def require(self, permission: str) -> None:
        if permission not in self.permissions:
            raise ApiPermissionError(permission, token_id=self.token_id, tenant_id=self.tenant_id)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ApiTokenService:
    def __init__(self, db: Session):
        self._db = db
        self._plans = PlanLimitService(db)

    def list_tokens(self, tenant_id: int) -> list[ApiTokenOutput]:
        tokens = self._db.execute(
            select(ApiToken)
            .where(ApiToken.tenant_id == tenant_id, ApiToken.is_active.is_(True))
            .order_by(ApiToken.created_at.desc(), ApiToken.id.desc())
        ).scalars().all()
        return [ApiTokenOutput.model_validate(t) for t in tokens]

    def create_token(
        self, data: ApiTokenCreate, tenant_id: int, user_id: int, user_email: str
    ) -> ApiTokenCreated:
        self._plans.require_api_enabled(tenant_id)

        permissions = sorted({p.strip() for p in data.permissions})
        invalid = [p for p in permissions if p not in ApiPermission.ALL]
        if invalid:
            raise ValidationError(f"Permisos inválidos: {', '.join(invalid)}", invalid=invalid)

        raw = generate_api_token()
        token = ApiToken(
            tenant_id=tenant_id,
            name=data.name.strip(),
            token_hash=hash_api_token(raw),
            token_prefix=display_prefix(raw),
            permissions=permissions,
            status=ApiTokenStatus.ACTIVE,
            expires_at=(
                utcnow() + timedelta(days=data.expires_in_days) if data.expires_in_days else None
            ),
        )
        token.set_created_by(user_id, user_email)
        self._db.add(token)
        safe_commit(self._db)
        self._db.refresh(token)

        logger.info("API token created", token_id=token.id, tenant_id=tenant_id, permissions=permissions)
        return ApiTokenCreated(**ApiTokenOutput.model_validate(token).model_dump(), token=raw)

    def revoke_token(self, token_id: int, tenant_id: int, user_id: int, user_email: str) -> None:
        token = self._db.scalar(
            select(ApiToken).where(
                ApiToken.id == token_id,
                ApiToken.tenant_id == tenant_id,
                ApiToken.is_active.is_(True),
            )
        )
        if token is None:
            raise NotFoundError("Token", token_id, tenant_id=tenant_id)

        token.status = ApiTokenStatus.REVOKED
        token.soft_delete(user_id, user_email)
        safe_commit(self._db)
        logger.info("API token revoked", token_id=token_id, tenant_id=tenant_id)

    def authenticate(self, raw: str | None) -> ApiTokenContext:
        """
        Resolve a plaintext token to its tenant.

        Raises:
            AuthenticationError: missing, unknown, revoked or expired token.
            ForbiddenError: the tenant is not active or its plan has no API.
        """
        raw = (raw or "").strip()
        if not raw:
            raise AuthenticationError("Token de API requerido")

        token = self._db.scalar(select(ApiToken).where(ApiToken.token_hash == hash_api_token(raw)))
        if token is None or token.status != ApiTokenStatus.ACTIVE or not token.is_active:
            raise AuthenticationError("Token inválido o revocado", prefix=display_prefix(raw))

        if token.expires_at is not None and _as_utc(token.expires_at) <= utcnow():
            token.status = ApiTokenStatus.EXPIRED
            safe_commit(self._db)
            raise AuthenticationError("Token expirado", token_id=token.id)

        tenant = self._db.get(Tenant, token.tenant_id)
        if tenant is None or not tenant.is_operational:
            raise ForbiddenError(detail=ErrorMessages.TENANT_SUSPENDED, tenant_id=token.tenant_id)
        self._plans.require_api_enabled(tenant.id)

        token.last_used_at = utcnow()
        safe_commit(self._db)

        return ApiTokenContext(
            token_id=token.id,
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            plan=tenant.plan,
            permissions=list(token.permissions or []),
        )
