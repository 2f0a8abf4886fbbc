"""
Plan Limit Service - Per-tenant quotas by subscription plan.

Limits are read from plan_limit and cached in process per plan for
settings.plan_limits_cache_ttl seconds. Usage is always counted live, so
the monthly invoice quota resets by itself when the calendar month changes.

Usage:
    service = PlanLimitService(db)
    service.check_limit(tenant_id, PlanResource.PRODUCTS)
"""

from __future__ import annotations

import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_api.models import DiningTable, Invoice, PlanLimit, Product, Tenant, User
from pos_shared.config.constants import (
    DEFAULT_PLAN_LIMITS,
    SEED_PLAN_LIMITS,
    PlanResource,
    Plans,
)
from pos_shared.config.logging import tenant_logger as logger
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.admin_schemas import PlanLimitOutput, PlanLimitUpdate, PlanUsageOutput
from pos_shared.utils.exceptions import ForbiddenError, NotFoundError, PlanLimitExceededError

API_NOT_ENABLED_MESSAGE = "Actualiza a un plan profesional o empresarial para acceder a la API."

# resource -> (limit field, label used in messages)
_RESOURCES: dict[str, tuple[str, str]] = {
    PlanResource.USERS: ("max_users", "usuarios"),
    PlanResource.PRODUCTS: ("max_products", "productos"),
    PlanResource.TABLES: ("max_tables", "mesas"),
    PlanResource.INVOICES: ("max_invoices_per_month", "facturas por mes"),
}


@dataclass(frozen=True)
class PlanLimits:
    plan: str
    max_users: int
    max_products: int
    max_tables: int
    max_invoices_per_month: int
    api_enabled: bool
    webhooks_enabled: bool


# plan -> (expires_at monotonic, limits)
_cache: dict[str, tuple[float, PlanLimits]] = {}
_cache_lock = threading.Lock()


def invalidate_plan_cache(plan: str | None = None) -> None:
    """Drop one plan (or all plans) from the cache."""
    with _cache_lock:
        if plan is None:
            _cache.clear()
        else:
            _cache.pop(plan, None)


def month_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """[first day of this month, first day of next month) in UTC."""
    now = now or datetime.now(timezone.utc)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def seed_plan_limits(db: Session) -> int:
    """Insert the missing plan rows. Returns how many were created."""
    created = 0
    for plan, limits in SEED_PLAN_LIMITS.items():
        if db.get(PlanLimit, plan) is None:
            db.add(PlanLimit(plan=plan, **limits))
            created += 1
    if created:
        safe_commit(db)
        logger.info("Plan limits seeded", created=created)
    return created


class PlanLimitService:
    """Reads plan limits, counts tenant usage and enforces quotas."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Limits
    # =========================================================================

    def get_limits(self, plan: str) -> PlanLimits:
        now = time.monotonic()
        with _cache_lock:
            cached = _cache.get(plan)
            if cached and cached[0] > now:
                return cached[1]

        row = self._db.get(PlanLimit, plan)
        if row is None:
            limits = PlanLimits(plan=plan, **DEFAULT_PLAN_LIMITS)
        else:
            limits = PlanLimits(
                plan=row.plan,
                max_users=row.max_users,
                max_products=row.max_products,
                max_tables=row.max_tables,
                max_invoices_per_month=row.max_invoices_per_month,
                api_enabled=row.api_enabled,
                webhooks_enabled=row.webhooks_enabled,
            )

        with _cache_lock:
            _cache[plan] = (now + settings.plan_limits_cache_ttl, limits)
        return limits

    def list_plans(self) -> list[PlanLimitOutput]:
        return [PlanLimitOutput(**asdict(self.get_limits(plan))) for plan in Plans.ALL]

    def update_plan(self, plan: str, data: PlanLimitUpdate) -> PlanLimitOutput:
        if plan not in Plans.ALL:
            raise NotFoundError("Plan", plan)

        row = self._db.get(PlanLimit, plan)
        if row is None:
            row = PlanLimit(plan=plan, **DEFAULT_PLAN_LIMITS)
            self._db.add(row)

        for field_name, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(row, field_name, value)
        safe_commit(self._db)
        invalidate_plan_cache(plan)

        logger.info("Plan limits updated", plan=plan)
        return PlanLimitOutput(**asdict(self.get_limits(plan)))

    # =========================================================================
    # Usage
    # =========================================================================

    def current_usage(self, tenant_id: int, resource: str) -> int:
        if resource == PlanResource.USERS:
            query = select(func.count(User.id)).where(
                User.tenant_id == tenant_id, User.is_active.is_(True)
            )
        elif resource == PlanResource.PRODUCTS:
            query = select(func.count(Product.id)).where(
                Product.tenant_id == tenant_id, Product.is_active.is_(True)
            )
        elif resource == PlanResource.TABLES:
            query = select(func.count(DiningTable.id)).where(
                DiningTable.tenant_id == tenant_id, DiningTable.is_active.is_(True)
            )
        elif resource == PlanResource.INVOICES:
            start, end = month_bounds()
            query = select(func.count(Invoice.id)).where(
                Invoice.tenant_id == tenant_id,
                Invoice.date >= start,
                Invoice.date < end,
            )
        else:
            raise ValueError(f"Unknown plan resource: {resource}")
        return self._db.scalar(query) or 0

    def usage(self, tenant_id: int) -> PlanUsageOutput:
        tenant = self._get_tenant(tenant_id)
        limits = self.get_limits(tenant.plan)
        return PlanUsageOutput(
            plan=tenant.plan,
            limits=PlanLimitOutput(**asdict(limits)),
            usage={resource: self.current_usage(tenant_id, resource) for resource in _RESOURCES},
        )

    # =========================================================================
    # Enforcement
    # =========================================================================

    def check_limit(self, tenant_id: int | None, resource: str, adding: int = 1) -> None:
        """
        Raise PlanLimitExceededError when current + adding > limit.
        The superadmin (no tenant) is never limited.
        """
        if tenant_id is None or adding <= 0:
            return

        tenant = self._get_tenant(tenant_id)
        limits = self.get_limits(tenant.plan)
        field_name, label = _RESOURCES[resource]
        limit = getattr(limits, field_name)
        current = self.current_usage(tenant_id, resource)

        if current + adding > limit:
            raise PlanLimitExceededError(
                label, tenant.plan, limit, current, tenant_id=tenant_id, resource=resource
            )

    def require_api_enabled(self, tenant_id: int) -> PlanLimits:
        tenant = self._get_tenant(tenant_id)
        limits = self.get_limits(tenant.plan)
        if not limits.api_enabled:
            raise ForbiddenError(detail=API_NOT_ENABLED_MESSAGE, tenant_id=tenant_id)
        return limits

    def _get_tenant(self, tenant_id: int) -> Tenant:
        tenant = self._db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Restaurante", tenant_id)
        return tenant
