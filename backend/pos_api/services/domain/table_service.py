"""
Table Service - Dining tables and their orders.

ORDER ITEM FLOW:
    pendiente --send--> enviado --kitchen--> preparando --kitchen--> listo --floor--> servido

Business rules:
- Table numbers are unique per restaurant among active tables
- Opening a table reuses its open order, if any, and marks it ocupada
- A table cannot be released while the kitchen still holds items of its order
- Orders are checked out through the regular invoice validation
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from pos_api.models import DiningTable, Order, OrderItem, utcnow
from pos_api.repositories import get_order_repository, get_product_repository, get_table_repository
from pos_api.services.domain.invoice_service import InvoiceService
from pos_api.services.domain.plan_limit_service import PlanLimitService
from pos_shared.config.constants import (
    ErrorMessages,
    ItemStatus,
    OrderStatus,
    PlanResource,
    TableStatus,
    UNIT_PRICE_FIELD,
    Unit,
)
from pos_shared.config.logging import tables_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.billing_schemas import InvoiceCreated, InvoiceItemInput
from pos_shared.utils.exceptions import (
    DuplicateEntityError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from pos_shared.utils.table_schemas import (
    OrderInvoiceCreate,
    OrderItemCreate,
    OrderItemOutput,
    OrderOutput,
    OrderSendResult,
    TableCreate,
    TableOutput,
    TableUpdate,
)
from pos_shared.utils.validators import quantize_money


def to_order_output(order: Order) -> OrderOutput:
    return OrderOutput(
        id=order.id,
        table_id=order.table_id,
        table_number=order.table.number if order.table else None,
        status=order.status,
        invoice_id=order.invoice_id,
        opened_at=order.opened_at,
        items=[OrderItemOutput.model_validate(item) for item in order.items],
        total=order.total,
    )


class TableService:
    def __init__(self, db: Session):
        self._db = db
        self._tables = get_table_repository(db)
        self._orders = get_order_repository(db)
        self._products = get_product_repository(db)
        self._plans = PlanLimitService(db)

    # =========================================================================
    # Tables
    # =========================================================================

    def list_tables(self, tenant_id: int) -> list[TableOutput]:
        tables = self._db.execute(
            self._tables._base_query(tenant_id)
            .where(DiningTable.is_active.is_(True))
            .order_by(DiningTable.number)
        ).scalars().all()
        open_orders = self._tables.open_order_counts(tenant_id)
        return [self._table_output(t, open_orders.get(t.id, 0)) for t in tables]

    def create_table(
        self, data: TableCreate, tenant_id: int, user_id: int, user_email: str
    ) -> TableOutput:
        self._plans.check_limit(tenant_id, PlanResource.TABLES)
        if self._tables.find_by_number(tenant_id, data.number):
            raise DuplicateEntityError("Mesa", str(data.number))

        table = DiningTable(
            tenant_id=tenant_id,
            number=data.number,
            description=(data.description or "").strip() or None,
            status=TableStatus.FREE,
        )
        table.set_created_by(user_id, user_email)
        self._tables.save(table)
        safe_commit(self._db)

        logger.info("Table created", table_id=table.id, number=table.number, tenant_id=tenant_id)
        return self._table_output(table, 0)

    def update_table(
        self, table_id: int, data: TableUpdate, tenant_id: int, user_id: int, user_email: str
    ) -> TableOutput:
        table = self._get_table(table_id, tenant_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("number") is not None and changes["number"] != table.number:
            if self._tables.find_by_number(tenant_id, changes["number"], exclude_id=table.id):
                raise DuplicateEntityError("Mesa", str(changes["number"]))
            table.number = changes["number"]
        if "description" in changes:
            table.description = (changes["description"] or "").strip() or None
        if changes.get("status") is not None:
            table.status = changes["status"]

        table.set_updated_by(user_id, user_email)
        safe_commit(self._db)
        self._db.refresh(table)
        return self._table_output(table, self._tables.open_order_counts(tenant_id).get(table.id, 0))

    def delete_table(self, table_id: int, tenant_id: int, user_id: int, user_email: str) -> None:
        table = self._get_table(table_id, tenant_id)
        if self._orders.find_open_for_table(table.id, tenant_id):
            raise ValidationError("No se puede eliminar una mesa con un pedido abierto")
        table.soft_delete(user_id, user_email)
        safe_commit(self._db)
        logger.info("Table deleted", table_id=table_id, tenant_id=tenant_id)

    def open_table(self, table_id: int, tenant_id: int, user_id: int, user_email: str) -> OrderOutput:
        table = self._tables.find_for_update(table_id, tenant_id)
        if table is None:
            raise NotFoundError("Mesa", table_id, tenant_id=tenant_id)

        order = self._orders.find_open_for_table(table.id, tenant_id)
        if order is None:
            order = Order(
                tenant_id=tenant_id,
                table_id=table.id,
                status=OrderStatus.OPEN,
                opened_by_id=user_id,
                opened_at=utcnow(),
            )
            order.set_created_by(user_id, user_email)
            self._db.add(order)
            logger.info("Table opened", table_id=table.id, tenant_id=tenant_id)

        table.status = TableStatus.OCCUPIED
        self._db.flush()
        safe_commit(self._db)
        return self.get_order(order.id, tenant_id)

    def release_table(
        self, table_id: int, tenant_id: int, user_id: int, user_email: str
    ) -> TableOutput:
        """
        Free the table. Its open order, if any, is closed; pending items
        that never reached the kitchen are dropped with it.
        """
        table = self._get_table(table_id, tenant_id)
        if self._orders.count_unserved_sent_items(table.id, tenant_id):
            raise ValidationError(ErrorMessages.TABLE_HAS_KITCHEN_ITEMS, table_id=table.id)

        order = self._orders.find_open_for_table(table.id, tenant_id)
        if order is not None:
            order.status = OrderStatus.CLOSED
            order.closed_at = utcnow()
            order.set_updated_by(user_id, user_email)

        table.status = TableStatus.FREE
        table.set_updated_by(user_id, user_email)
        safe_commit(self._db)

        logger.info("Table released", table_id=table.id, tenant_id=tenant_id)
        return self._table_output(table, 0)

    # =========================================================================
    # Orders
    # =========================================================================

    def get_order(self, order_id: int, tenant_id: int) -> OrderOutput:
        return to_order_output(self._get_order(order_id, tenant_id))

    def add_item(
        self, order_id: int, data: OrderItemCreate, tenant_id: int
    ) -> OrderItemOutput:
        order = self._get_open_order(order_id, tenant_id)
        product = self._products.find_by_id(data.product_id, tenant_id)
        if product is None:
            raise NotFoundError("Producto", data.product_id, tenant_id=tenant_id)

        unit = (data.unit or "").strip().upper()
        if unit not in Unit.ALL:
            raise ValidationError(f"Unidad inválida: {data.unit}")
        if data.quantity <= 0:
            raise ValidationError("La cantidad debe ser mayor a 0")

        price = data.price if data.price is not None else product.price_for(UNIT_PRICE_FIELD[unit])
        if price < 0:
            raise ValidationError("El precio no puede ser negativo")
        price = quantize_money(Decimal(price))

        item = OrderItem(
            tenant_id=tenant_id,
            order_id=order.id,
            product_id=product.id,
            product_name=product.name,
            quantity=data.quantity,
            unit=unit,
            price=price,
            subtotal=quantize_money(data.quantity * price),
            note=(data.note or "").strip() or None,
            status=ItemStatus.PENDING,
            created_at=utcnow(),
        )
        self._db.add(item)
        self._db.flush()
        safe_commit(self._db)
        self._db.refresh(item)

        logger.info("Order item added", order_id=order.id, item_id=item.id, product_id=product.id)
        return OrderItemOutput.model_validate(item)

    def delete_item(self, item_id: int, tenant_id: int) -> None:
        item = self._get_item(item_id, tenant_id)
        if item.status != ItemStatus.PENDING:
            raise InvalidStateError("El producto", item.status, [ItemStatus.PENDING])
        self._db.delete(item)
        safe_commit(self._db)
        logger.info("Order item removed", item_id=item_id, order_id=item.order_id)

    def send_item(self, item_id: int, tenant_id: int) -> OrderItemOutput:
        item = self._get_item(item_id, tenant_id)
        if item.order.status != OrderStatus.OPEN:
            raise InvalidStateError("El pedido", item.order.status, [OrderStatus.OPEN])
        if item.status != ItemStatus.PENDING:
            raise InvalidTransitionError("el producto", item.status, ItemStatus.SENT)

        item.status = ItemStatus.SENT
        item.sent_at = utcnow()
        safe_commit(self._db)
        self._db.refresh(item)

        logger.info("Order item sent to kitchen", item_id=item.id, order_id=item.order_id)
        return OrderItemOutput.model_validate(item)

    def send_order(self, order_id: int, tenant_id: int) -> OrderSendResult:
        order = self._get_open_order(order_id, tenant_id)
        now = utcnow()
        pending = self._orders.pending_items(order.id, tenant_id)
        for item in pending:
            item.status = ItemStatus.SENT
            item.sent_at = now
        safe_commit(self._db)

        logger.info("Order sent to kitchen", order_id=order.id, items=len(pending))
        return OrderSendResult(order_id=order.id, sent=len(pending))

    def set_item_status(self, item_id: int, status: str, tenant_id: int) -> OrderItemOutput:
        """Floor side of the flow: only listo -> servido."""
        item = self._get_item(item_id, tenant_id)
        if status != ItemStatus.SERVED or item.status != ItemStatus.READY:
            raise InvalidTransitionError("el producto", item.status, status)

        item.status = ItemStatus.SERVED
        item.served_at = utcnow()
        safe_commit(self._db)
        self._db.refresh(item)
        return OrderItemOutput.model_validate(item)

    def move_order(
        self, order_id: int, target_table_id: int, tenant_id: int, user_id: int, user_email: str
    ) -> OrderOutput:
        order = self._get_open_order(order_id, tenant_id)
        target = self._tables.find_for_update(target_table_id, tenant_id)
        if target is None or target.status != TableStatus.FREE or target.id == order.table_id:
            raise ValidationError(ErrorMessages.TARGET_TABLE_NOT_FREE, target_table_id=target_table_id)

        source = order.table
        if source is not None:
            source.status = TableStatus.FREE
            source.set_updated_by(user_id, user_email)
        target.status = TableStatus.OCCUPIED
        target.set_updated_by(user_id, user_email)
        order.table_id = target.id
        order.set_updated_by(user_id, user_email)
        safe_commit(self._db)

        logger.info(
            "Order moved",
            order_id=order.id,
            from_table=source.id if source else None,
            to_table=target.id,
        )
        self._db.expire(order)
        return self.get_order(order.id, tenant_id)

    def invoice_order(
        self, order_id: int, data: OrderInvoiceCreate, tenant_id: int, user_id: int, user_email: str
    ) -> InvoiceCreated:
        """
        Check out an open order: every item is billed, the order becomes
        facturado and its table is freed, all in one transaction.
        """
        order = self._get_open_order(order_id, tenant_id)
        if not order.items:
            raise ValidationError(ErrorMessages.EMPTY_ORDER, order_id=order.id)

        items = [
            InvoiceItemInput(
                product_id=item.product_id,
                quantity=item.quantity,
                unit=item.unit,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in order.items
            if item.product_id is not None
        ]

        try:
            invoice = InvoiceService(self._db).write_invoice(
                tenant_id=tenant_id,
                client_id=data.client_id,
                items=items,
                total=None,
                payments=data.payments,
                payment_method=data.payment_method,
                notes=data.notes,
                user_id=user_id,
                user_email=user_email,
                order_id=order.id,
            )
            order.status = OrderStatus.INVOICED
            order.invoice_id = invoice.id
            order.closed_at = utcnow()
            order.set_updated_by(user_id, user_email)
            if order.table is not None:
                order.table.status = TableStatus.FREE
            safe_commit(self._db)
        except Exception:
            self._db.rollback()
            raise

        logger.info("Order invoiced", order_id=order.id, invoice_id=invoice.id)
        return InvoiceCreated(id=invoice.id, total=invoice.total, payment_method=invoice.payment_method)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _table_output(self, table: DiningTable, open_orders: int) -> TableOutput:
        return TableOutput(
            id=table.id,
            number=table.number,
            description=table.description,
            status=table.status,
            open_orders=open_orders,
        )

    def _get_table(self, table_id: int, tenant_id: int) -> DiningTable:
        table = self._tables.find_by_id(table_id, tenant_id)
        if table is None:
            raise NotFoundError("Mesa", table_id, tenant_id=tenant_id)
        return table

    def _get_order(self, order_id: int, tenant_id: int) -> Order:
        order = self._orders.find_by_id(order_id, tenant_id)
        if order is None:
            raise NotFoundError("Pedido", order_id, tenant_id=tenant_id)
        return order

    def _get_open_order(self, order_id: int, tenant_id: int) -> Order:
        order = self._get_order(order_id, tenant_id)
        if order.status != OrderStatus.OPEN:
            raise InvalidStateError("El pedido", order.status, [OrderStatus.OPEN])
        return order

    def _get_item(self, item_id: int, tenant_id: int) -> OrderItem:
        item = self._orders.find_item(item_id, tenant_id)
        if item is None:
            raise NotFoundError("Producto del pedido", item_id, tenant_id=tenant_id)
        return item
