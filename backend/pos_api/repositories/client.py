"""
Client Repository - Data access for invoice clients.
"""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from pos_api.models import Client, Invoice
from .base import BaseRepository, RepositoryFilters


@dataclass
class ClientFilters(RepositoryFilters):
    pass


class ClientRepository(BaseRepository[Client]):
    @property
    def model(self) -> type[Client]:
        return Client

    def _base_query(self, tenant_id: int) -> Select:
        return select(Client).where(Client.tenant_id == tenant_id)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        pattern = filters.search_pattern
        if pattern:
            query = query.where(
                or_(
                    Client.name.ilike(pattern, escape="\\"),
                    Client.phone.ilike(pattern, escape="\\"),
                    Client.tax_id.ilike(pattern, escape="\\"),
                )
            )
        return query

    def _ordering(self) -> list:
        return [Client.name, Client.id]

    def search(self, tenant_id: int, term: str, limit: int) -> Sequence[Client]:
        """Match on name, phone or tax id."""
        return self.find_all(tenant_id, ClientFilters(search=term, limit=limit))

    def find_by_phone(
        self, tenant_id: int, phone: str, exclude_id: int | None = None
    ) -> Client | None:
        query = self._base_query(tenant_id).where(
            Client.phone == phone,
            Client.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(Client.id != exclude_id)
        return self._db.scalar(query.limit(1))

    def count_invoices(self, client_id: int, tenant_id: int) -> int:
        query = select(func.count(Invoice.id)).where(
            Invoice.tenant_id == tenant_id,
            Invoice.client_id == client_id,
        )
        return self._db.scalar(query) or 0


def get_client_repository(db: Session) -> ClientRepository:
    return ClientRepository(db)
