"""
Tenant Service - Restaurant administration for the superadmin.

Business rules:
- Creating a restaurant also creates its first admin user, atomically
- Slugs and user emails are unique platform-wide
- Deleting a restaurant is a soft delete that also marks it inactive
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_api.models import Invoice, Product, Tenant, User
from pos_api.repositories import get_user_repository
from pos_shared.config.constants import Roles, TenantStatus
from pos_shared.config.logging import mask_email, tenant_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.security.password import hash_password
from pos_shared.utils.admin_schemas import (
    TenantCreate,
    TenantCreated,
    TenantOutput,
    TenantUpdate,
    TenantWithStats,
    UserOutput,
)
from pos_shared.utils.exceptions import DuplicateEntityError, NotFoundError


class TenantService:
    def __init__(self, db: Session):
        self._db = db
        self._users = get_user_repository(db)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_tenant(self, tenant_id: int) -> Tenant:
        tenant = self._db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Restaurante", tenant_id)
        return tenant

    def list_with_stats(self) -> list[TenantWithStats]:
        tenants = self._db.execute(select(Tenant).order_by(Tenant.name)).scalars().all()

        users = self._count_by_tenant(
            select(User.tenant_id, func.count(User.id))
            .where(User.is_active.is_(True), User.tenant_id.is_not(None))
            .group_by(User.tenant_id)
        )
        products = self._count_by_tenant(
            select(Product.tenant_id, func.count(Product.id))
            .where(Product.is_active.is_(True))
            .group_by(Product.tenant_id)
        )
        invoice_rows = self._db.execute(
            select(Invoice.tenant_id, func.count(Invoice.id), func.sum(Invoice.total))
            .group_by(Invoice.tenant_id)
        ).all()
        invoices = {tid: (count, total) for tid, count, total in invoice_rows}

        result = []
        for tenant in tenants:
            invoice_count, total_sales = invoices.get(tenant.id, (0, Decimal("0")))
            result.append(
                TenantWithStats(
                    **TenantOutput.model_validate(tenant).model_dump(),
                    users=users.get(tenant.id, 0),
                    products=products.get(tenant.id, 0),
                    invoices=invoice_count,
                    total_sales=Decimal(total_sales or 0),
                )
            )
        return result

    def list_users(self, tenant_id: int) -> list[UserOutput]:
        self.get_tenant(tenant_id)
        users = self._db.execute(
            select(User).where(User.tenant_id == tenant_id).order_by(User.name)
        ).scalars().all()
        return [UserOutput.model_validate(u) for u in users]

    def global_stats(self) -> dict:
        by_status = dict(
            self._db.execute(
                select(Tenant.status, func.count(Tenant.id)).group_by(Tenant.status)
            ).all()
        )
        invoice_count, sales = self._db.execute(
            select(func.count(Invoice.id), func.coalesce(func.sum(Invoice.total), 0))
        ).one()
        users = self._db.scalar(
            select(func.count(User.id)).where(
                User.is_active.is_(True), User.role != Roles.SUPERADMIN
            )
        )
        return {
            "tenants": sum(by_status.values()),
            "tenants_by_status": {status: by_status.get(status, 0) for status in TenantStatus.ALL},
            "users": users or 0,
            "invoices": invoice_count or 0,
            "total_sales": float(sales or 0),
        }

    # =========================================================================
    # Commands
    # =========================================================================

    def create(self, data: TenantCreate, user_id: int, user_email: str) -> TenantCreated:
        if self._db.scalar(select(Tenant.id).where(Tenant.slug == data.slug)):
            raise DuplicateEntityError("Restaurante", data.slug)
        if self._users.find_by_email(data.admin_email) is not None:
            raise DuplicateEntityError("Usuario", data.admin_email)

        tenant = Tenant(
            name=data.name.strip(),
            slug=data.slug,
            address=data.address,
            phone=data.phone,
            tax_id=data.tax_id,
            email=data.email,
            plan=data.plan,
            status=TenantStatus.ACTIVE,
        )
        tenant.set_created_by(user_id, user_email)
        self._db.add(tenant)
        self._db.flush()

        admin = User(
            tenant_id=tenant.id,
            name=data.admin_name.strip(),
            email=data.admin_email.lower(),
            password_hash=hash_password(data.admin_password),
            role=Roles.ADMIN,
        )
        admin.set_created_by(user_id, user_email)
        self._db.add(admin)
        self._db.flush()

        safe_commit(self._db)
        self._db.refresh(tenant)

        logger.info(
            "Restaurant created",
            tenant_id=tenant.id,
            slug=tenant.slug,
            plan=tenant.plan,
            admin=mask_email(admin.email),
        )
        return TenantCreated(tenant=TenantOutput.model_validate(tenant), admin_user_id=admin.id)

    def update(
        self, tenant_id: int, data: TenantUpdate, user_id: int, user_email: str
    ) -> TenantOutput:
        tenant = self.get_tenant(tenant_id)
        for field_name, value in data.model_dump(exclude_unset=True).items():
            if field_name in ("name", "plan", "status") and value is None:
                continue
            setattr(tenant, field_name, value)
        if tenant.status != TenantStatus.INACTIVE and not tenant.is_active:
            tenant.restore(user_id, user_email)
        tenant.set_updated_by(user_id, user_email)
        safe_commit(self._db)
        self._db.refresh(tenant)

        logger.info("Restaurant updated", tenant_id=tenant_id)
        return TenantOutput.model_validate(tenant)

    def set_status(
        self, tenant_id: int, status: str, user_id: int, user_email: str
    ) -> TenantOutput:
        tenant = self.get_tenant(tenant_id)
        tenant.status = status
        if status == TenantStatus.ACTIVE and not tenant.is_active:
            tenant.restore(user_id, user_email)
        tenant.set_updated_by(user_id, user_email)
        safe_commit(self._db)
        self._db.refresh(tenant)

        logger.info("Restaurant status changed", tenant_id=tenant_id, status=status)
        return TenantOutput.model_validate(tenant)

    def delete(self, tenant_id: int, user_id: int, user_email: str) -> None:
        tenant = self.get_tenant(tenant_id)
        tenant.status = TenantStatus.INACTIVE
        tenant.soft_delete(user_id, user_email)
        safe_commit(self._db)
        logger.info("Restaurant deleted", tenant_id=tenant_id, user_id=user_id)

    def reset_password(self, target_user_id: int, password: str) -> None:
        user = self._users.find_by_id_global(target_user_id)
        if user is None:
            raise NotFoundError("Usuario", target_user_id)
        user.password_hash = hash_password(password)
        safe_commit(self._db)
        logger.info("Password reset by superadmin", user_id=target_user_id)

    def _count_by_tenant(self, query) -> dict[int, int]:
        return {tenant_id: count for tenant_id, count in self._db.execute(query).all()}
