"""
Kitchen Service - The kitchen board.

The board lists every order item in enviado, preparando or listo, oldest
first. The kitchen moves items enviado -> preparando -> listo (or skips
straight to listo); the floor serves them afterwards.

Status changes are a single conditional UPDATE so two cooks touching the
same item cannot both win.
"""

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from pos_api.models import DiningTable, Order, OrderItem, Product, utcnow
from pos_shared.config.constants import ErrorMessages, ItemStatus
from pos_shared.config.logging import kitchen_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.exceptions import NotFoundError, ValidationError
from pos_shared.utils.table_schemas import KitchenItemOutput, KitchenStatusResult


class KitchenService:
    def __init__(self, db: Session):
        self._db = db

    def list_queue(self, tenant_id: int) -> list[KitchenItemOutput]:
        query = (
            select(
                OrderItem,
                Order.table_id,
                DiningTable.number,
                func.coalesce(Product.name, OrderItem.product_name).label("display_name"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .outerjoin(DiningTable, DiningTable.id == Order.table_id)
            .outerjoin(Product, Product.id == OrderItem.product_id)
            .where(
                OrderItem.tenant_id == tenant_id,
                OrderItem.status.in_(ItemStatus.KITCHEN_VISIBLE),
            )
            .order_by(func.coalesce(OrderItem.sent_at, OrderItem.created_at), OrderItem.id)
        )

        return [
            KitchenItemOutput(
                id=item.id,
                order_id=item.order_id,
                table_id=table_id,
                table_number=table_number,
                product_name=display_name,
                quantity=item.quantity,
                unit=item.unit,
                note=item.note,
                status=item.status,
                sent_at=item.sent_at,
                preparing_at=item.preparing_at,
                ready_at=item.ready_at,
            )
            for item, table_id, table_number, display_name in self._db.execute(query).all()
        ]

    def set_status(self, item_id: int, status: str, tenant_id: int) -> KitchenStatusResult:
        """
        Move an item to preparando or listo.

        Raises:
            ValidationError: target status is not preparando/listo.
            NotFoundError: the item does not exist in this restaurant or is
                no longer enviado/preparando.
        """
        status = (status or "").strip().lower()
        if status not in ItemStatus.KITCHEN_TARGETS:
            raise ValidationError(ErrorMessages.INVALID_STATUS, status=status)

        values: dict = {"status": status}
        if status == ItemStatus.PREPARING:
            values["preparing_at"] = utcnow()
        else:
            values["ready_at"] = utcnow()

        result = self._db.execute(
            update(OrderItem)
            .where(
                OrderItem.id == item_id,
                OrderItem.tenant_id == tenant_id,
                OrderItem.status.in_(ItemStatus.KITCHEN_WORKABLE),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self._db.rollback()
            raise NotFoundError(
                "Item", item_id, detail=ErrorMessages.KITCHEN_ITEM_NOT_UPDATABLE, tenant_id=tenant_id
            )
        safe_commit(self._db)

        logger.info("Kitchen item updated", item_id=item_id, status=status, tenant_id=tenant_id)
        return KitchenStatusResult(id=item_id, status=status)
