"""
Floor Repositories - Data access for dining tables and orders.
"""

from typing import Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from pos_shared.config.constants import ItemStatus, OrderStatus
from pos_api.models import DiningTable, Order, OrderItem
from .base import BaseRepository, RepositoryFilters


class DiningTableRepository(BaseRepository[DiningTable]):
    @property
    def model(self) -> type[DiningTable]:
        return DiningTable

    def _base_query(self, tenant_id: int) -> Select:
        return select(DiningTable).where(DiningTable.tenant_id == tenant_id)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def _ordering(self) -> list:
        return [DiningTable.number]

    def find_by_number(
        self, tenant_id: int, number: int, exclude_id: int | None = None
    ) -> DiningTable | None:
        query = self._base_query(tenant_id).where(
            DiningTable.number == number,
            DiningTable.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(DiningTable.id != exclude_id)
        return self._db.scalar(query.limit(1))

    def find_for_update(self, table_id: int, tenant_id: int) -> DiningTable | None:
        """Active table with a row lock (no-op on SQLite)."""
        query = (
            self._base_query(tenant_id)
            .where(DiningTable.id == table_id, DiningTable.is_active.is_(True))
            .with_for_update()
        )
        return self._db.scalar(query)

    def open_order_counts(self, tenant_id: int) -> dict[int, int]:
        """{table_id: number of open orders}."""
        query = (
            select(Order.table_id, func.count(Order.id))
            .where(
                Order.tenant_id == tenant_id,
                Order.status == OrderStatus.OPEN,
                Order.table_id.is_not(None),
            )
            .group_by(Order.table_id)
        )
        return {table_id: count for table_id, count in self._db.execute(query).all()}


class OrderRepository(BaseRepository[Order]):
    """Orders always come with their items and table."""

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self, tenant_id: int) -> Select:
        return (
            select(Order)
            .where(Order.tenant_id == tenant_id)
            .options(selectinload(Order.items), joinedload(Order.table))
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def _ordering(self) -> list:
        return [Order.opened_at.desc(), Order.id.desc()]

    def find_open_for_table(self, table_id: int, tenant_id: int) -> Order | None:
        query = self._base_query(tenant_id).where(
            Order.table_id == table_id,
            Order.status == OrderStatus.OPEN,
            Order.is_active.is_(True),
        ).order_by(Order.id)
        return self._db.execute(query).scalars().unique().first()

    def count_unserved_sent_items(self, table_id: int, tenant_id: int) -> int:
        """Items of open orders on the table that the kitchen still holds."""
        query = (
            select(func.count(OrderItem.id))
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.tenant_id == tenant_id,
                Order.table_id == table_id,
                Order.status == OrderStatus.OPEN,
                OrderItem.status.in_(ItemStatus.KITCHEN_VISIBLE),
            )
        )
        return self._db.scalar(query) or 0

    def count_open_items_for_product(self, product_id: int, tenant_id: int) -> int:
        """Items of open orders that still have to be invoiced with this product."""
        query = (
            select(func.count(OrderItem.id))
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.tenant_id == tenant_id,
                Order.status == OrderStatus.OPEN,
                Order.is_active.is_(True),
                OrderItem.product_id == product_id,
            )
        )
        return self._db.scalar(query) or 0

    def find_item(self, item_id: int, tenant_id: int) -> OrderItem | None:
        query = (
            select(OrderItem)
            .where(OrderItem.id == item_id, OrderItem.tenant_id == tenant_id)
            .options(joinedload(OrderItem.order))
        )
        return self._db.scalar(query)

    def pending_items(self, order_id: int, tenant_id: int) -> Sequence[OrderItem]:
        query = select(OrderItem).where(
            OrderItem.order_id == order_id,
            OrderItem.tenant_id == tenant_id,
            OrderItem.status == ItemStatus.PENDING,
        )
        return self._db.execute(query).scalars().all()


def get_table_repository(db: Session) -> DiningTableRepository:
    return DiningTableRepository(db)


def get_order_repository(db: Session) -> OrderRepository:
    return OrderRepository(db)
