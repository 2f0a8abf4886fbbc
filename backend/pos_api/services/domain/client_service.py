"""
Client Service.

Business rules:
- A repeated phone inside the restaurant is allowed but logged
- Clients with invoices cannot be deleted
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_api.models import Client, Invoice
from pos_api.repositories import ClientFilters, get_client_repository
from pos_api.services.base_service import BaseCRUDService
from pos_shared.config.constants import Limits
from pos_shared.config.logging import get_logger
from pos_shared.utils.admin_schemas import ClientOutput, TopClientOutput
from pos_shared.utils.exceptions import ValidationError

logger = get_logger(__name__)


class ClientService(BaseCRUDService[Client, ClientOutput]):
    def __init__(self, db: Session):
        super().__init__(
            db=db,
            repo=get_client_repository(db),
            output_schema=ClientOutput,
            entity_name="Cliente",
        )

    def list_clients(
        self, tenant_id: int, filters: ClientFilters
    ) -> tuple[list[ClientOutput], int]:
        return self.list_all(tenant_id, filters), self.count(tenant_id, filters)

    def search(self, tenant_id: int, term: str) -> list[ClientOutput]:
        term = (term or "").strip()
        if not term:
            return []
        return [self.to_output(c) for c in self._repo.search(tenant_id, term, Limits.SEARCH_RESULTS)]

    def top_clients(self, tenant_id: int, limit: int = Limits.DEFAULT_TOP_N) -> list[TopClientOutput]:
        """Clients ranked by number of invoices, then by amount spent."""
        invoice_count = func.count(Invoice.id)
        total_spent = func.coalesce(func.sum(Invoice.total), 0)
        rows = self._db.execute(
            select(Client.id, Client.name, invoice_count, total_spent)
            .join(Invoice, Invoice.client_id == Client.id)
            .where(Client.tenant_id == tenant_id, Invoice.tenant_id == tenant_id)
            .group_by(Client.id, Client.name)
            .order_by(invoice_count.desc(), total_spent.desc(), Client.id)
            .limit(limit)
        ).all()
        return [
            TopClientOutput(id=cid, name=name, invoices=count, total_spent=total)
            for cid, name, count, total in rows
        ]

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        self._warn_duplicate_phone(data.get("phone"), tenant_id)

    def _validate_update(self, entity: Client, data: dict[str, Any], tenant_id: int) -> None:
        if "name" in data:
            name = (data["name"] or "").strip()
            if not name:
                data.pop("name")
            else:
                data["name"] = name
        if data.get("phone") and data["phone"] != entity.phone:
            self._warn_duplicate_phone(data["phone"], tenant_id, exclude_id=entity.id)

    def _validate_delete(self, entity: Client, tenant_id: int) -> None:
        if self._repo.count_invoices(entity.id, tenant_id):
            raise ValidationError(
                "No se puede eliminar el cliente porque tiene facturas asociadas",
                client_id=entity.id,
            )

    def _warn_duplicate_phone(
        self, phone: str | None, tenant_id: int, exclude_id: int | None = None
    ) -> None:
        if not phone:
            return
        existing = self._repo.find_by_phone(tenant_id, phone, exclude_id=exclude_id)
        if existing is not None:
            logger.warning(
                "Client phone already registered",
                tenant_id=tenant_id,
                existing_client_id=existing.id,
            )
