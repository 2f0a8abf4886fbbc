"""
User Service - Staff management inside a restaurant.

Business rules:
- Roles limited to admin, cajero, mesero, cocina
- Emails are unique across the platform
- The plan's max_users quota applies to new users
- Nobody can delete their own account
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from pos_api.models import User
from pos_api.repositories import get_user_repository
from pos_api.services.base_service import BaseCRUDService
from pos_api.services.domain.plan_limit_service import PlanLimitService
from pos_shared.config.constants import Limits, PlanResource, Roles
from pos_shared.security.password import hash_password
from pos_shared.utils.admin_schemas import UserCreate, UserOutput, UserUpdate
from pos_shared.utils.exceptions import DuplicateEntityError, ForbiddenError, ValidationError


class UserService(BaseCRUDService[User, UserOutput]):
    def __init__(self, db: Session):
        super().__init__(
            db=db,
            repo=get_user_repository(db),
            output_schema=UserOutput,
            entity_name="Usuario",
        )
        self._plans = PlanLimitService(db)

    def create_user(
        self, data: UserCreate, tenant_id: int, user_id: int, user_email: str
    ) -> UserOutput:
        payload = data.model_dump(exclude={"password"})
        payload["email"] = payload["email"].lower()
        payload["password_hash"] = hash_password(data.password)
        return self.create(payload, tenant_id, user_id, user_email)

    def update_user(
        self,
        entity_id: int,
        data: UserUpdate,
        tenant_id: int,
        user_id: int,
        user_email: str,
    ) -> UserOutput:
        payload = data.model_dump(exclude_unset=True, exclude={"password"})
        for required in ("name", "email", "role", "is_active"):
            if required in payload and payload[required] is None:
                payload.pop(required)
        if payload.get("email"):
            payload["email"] = payload["email"].lower()

        if data.password:
            if len(data.password) < Limits.MIN_PASSWORD_LENGTH:
                raise ValidationError(
                    f"La contraseña debe tener al menos {Limits.MIN_PASSWORD_LENGTH} caracteres"
                )
            payload["password_hash"] = hash_password(data.password)

        if entity_id == user_id and payload.get("is_active") is False:
            raise ForbiddenError("desactivar tu propio usuario")

        return self.update(entity_id, payload, tenant_id, user_id, user_email)

    def delete_user(self, entity_id: int, tenant_id: int, user_id: int, user_email: str) -> None:
        if entity_id == user_id:
            raise ForbiddenError("eliminar tu propio usuario")
        self.delete(entity_id, tenant_id, user_id, user_email)

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        self._check_role(data["role"])
        self._check_email_free(data["email"])
        self._plans.check_limit(tenant_id, PlanResource.USERS)

    def _validate_update(self, entity: User, data: dict[str, Any], tenant_id: int) -> None:
        if "role" in data:
            self._check_role(data["role"])
        if data.get("email") and data["email"] != entity.email:
            self._check_email_free(data["email"])

    def _check_role(self, role: str) -> None:
        if role not in Roles.TENANT_ROLES:
            raise ValidationError(f"Rol inválido: {role}")

    def _check_email_free(self, email: str) -> None:
        if self._repo.find_by_email(email) is not None:
            raise DuplicateEntityError("Usuario", email)
