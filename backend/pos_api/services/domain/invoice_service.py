"""
Invoice Service - Invoicing with split payments.

CREATE FLOW:
1. Plan quota (max_invoices_per_month)
2. At least one line
3. Client belongs to the restaurant
4. Every product belongs to the restaurant and is active
5. Per line: quantity > 0, price >= 0, unit KG/UND/LB, subtotal matches
6. Total = sum of subtotals; a client-sent total must match within 0.01
7. Payments normalized and checked against the total
8. Header, lines, payments (and the optional kitchen order) in one transaction

Invariant: total == sum(lines.subtotal) == sum(payments.amount), within 0.01.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session

from pos_api.models import (
    DiningTable,
    Invoice,
    InvoiceItem,
    InvoicePayment,
    Order,
    OrderItem,
    Product,
    Tenant,
    utcnow,
)
from pos_api.repositories import (
    InvoiceFilters,
    get_client_repository,
    get_invoice_repository,
    get_product_repository,
    get_table_repository,
)
from pos_api.services.domain.plan_limit_service import PlanLimitService
from pos_shared.config.constants import (
    ErrorMessages,
    ItemStatus,
    OrderStatus,
    PaymentMethod,
    PlanResource,
    Unit,
)
from pos_shared.config.logging import billing_logger as logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.billing_schemas import (
    BusinessHeader,
    InvoiceClient,
    InvoiceCreate,
    InvoiceCreated,
    InvoiceDetail,
    InvoiceHeader,
    InvoiceItemInput,
    InvoiceLineOutput,
    InvoicePaymentOutput,
    InvoiceReceipt,
    InvoiceSummary,
    PaymentInput,
)
from pos_shared.utils.exceptions import NotFoundError, PaymentAmountError, ValidationError
from pos_shared.utils.validators import money_equal, quantize_money, safe_return_to, to_decimal


@dataclass
class InvoiceLine:
    """A validated invoice line, priced and ready to insert."""

    product: Product
    quantity: Decimal
    unit: str
    price: Decimal
    subtotal: Decimal
    send_to_kitchen: bool = False
    note: str | None = None


@dataclass
class NormalizedPayment:
    method: str
    amount: Decimal
    reference: str | None = None


# =============================================================================
# Pure helpers
# =============================================================================


def normalize_payments(
    payments: Sequence[PaymentInput] | None,
    legacy_method: str | None,
    total: Decimal,
) -> tuple[list[NormalizedPayment], str]:
    """
    Turn the request's payment entries into the rows to store.

    - Methods are trimmed and lowercased; only efectivo, transferencia and
      tarjeta with an amount > 0 survive.
    - Without entries, one payment for the full total is made with the
      legacy method (efectivo when missing, unknown, or "mixto").
    - The amounts must add up to the total within 0.01.

    Returns the payments and the invoice-level method: "mixto" for more
    than one payment, otherwise the single payment's method.

    Raises:
        ValidationError: entries were sent but none is valid.
        PaymentAmountError: amounts do not add up to the total.
    """
    if payments:
        normalized: list[NormalizedPayment] = []
        for entry in payments:
            method = (entry.method or "").strip().lower()
            amount = to_decimal(entry.amount)
            if method not in PaymentMethod.SPLIT_METHODS or amount is None or amount <= 0:
                continue
            reference = (entry.reference or "").strip() or None
            normalized.append(NormalizedPayment(method, quantize_money(amount), reference))
        if not normalized:
            raise ValidationError(ErrorMessages.NO_VALID_PAYMENTS)
    else:
        method = (legacy_method or "").strip().lower()
        if method not in PaymentMethod.SPLIT_METHODS:
            method = PaymentMethod.CASH
        normalized = [NormalizedPayment(method, total)]

    paid = sum((p.amount for p in normalized), Decimal("0"))
    if not money_equal(paid, total):
        raise PaymentAmountError(ErrorMessages.PAYMENTS_MISMATCH, expected=total, received=paid)

    invoice_method = PaymentMethod.MIXED if len(normalized) > 1 else normalized[0].method
    return normalized, invoice_method


def line_subtotal(quantity: Decimal, price: Decimal, given: Decimal | None) -> Decimal:
    """
    Subtotal of a line: quantity x price rounded to cents. A client-sent
    subtotal is accepted when it is within 0.01 of that value.
    """
    computed = quantize_money(quantity * price)
    if given is None:
        return computed
    if not money_equal(computed, given):
        raise ValidationError(
            "El subtotal no coincide con cantidad por precio",
            expected=str(computed),
            received=str(given),
        )
    return quantize_money(given)


def to_summary(invoice: Invoice) -> InvoiceSummary:
    return InvoiceSummary(
        id=invoice.id,
        date=invoice.date,
        total=invoice.total,
        payment_method=invoice.payment_method,
        client_id=invoice.client_id,
        client_name=invoice.client.name if invoice.client else "",
    )


# =============================================================================
# Service
# =============================================================================


class InvoiceService:
    def __init__(self, db: Session):
        self._db = db
        self._invoices = get_invoice_repository(db)
        self._clients = get_client_repository(db)
        self._products = get_product_repository(db)
        self._tables = get_table_repository(db)
        self._plans = PlanLimitService(db)

    # =========================================================================
    # Commands
    # =========================================================================

    def create_invoice(
        self, data: InvoiceCreate, tenant_id: int, user_id: int, user_email: str
    ) -> InvoiceCreated:
        try:
            invoice = self.write_invoice(
                tenant_id=tenant_id,
                client_id=data.client_id,
                items=data.items,
                total=data.total,
                payments=data.payments,
                payment_method=data.payment_method,
                notes=data.notes,
                user_id=user_id,
                user_email=user_email,
                kitchen_table_id=data.table_id,
            )
            safe_commit(self._db)
        except Exception:
            self._db.rollback()
            raise

        return InvoiceCreated(
            id=invoice.id, total=invoice.total, payment_method=invoice.payment_method
        )

    def write_invoice(
        self,
        *,
        tenant_id: int,
        client_id: int,
        items: Sequence[InvoiceItemInput],
        total: Decimal | None,
        payments: Sequence[PaymentInput] | None,
        payment_method: str | None,
        notes: str | None,
        user_id: int,
        user_email: str,
        order_id: int | None = None,
        kitchen_table_id: int | None = None,
    ) -> Invoice:
        """
        Validate and insert an invoice without committing.

        The caller owns the transaction (create_invoice here, or the order
        checkout in TableService) and must roll back on any exception.
        """
        self._plans.check_limit(tenant_id, PlanResource.INVOICES)

        if not items:
            raise ValidationError(ErrorMessages.NO_PRODUCTS)

        client = self._clients.find_by_id(client_id, tenant_id)
        if client is None:
            raise NotFoundError("Cliente", client_id, tenant_id=tenant_id)

        lines = self._price_lines(items, tenant_id)
        invoice_total = self._check_total(lines, total)
        normalized, invoice_method = normalize_payments(payments, payment_method, invoice_total)

        kitchen_lines = [line for line in lines if line.send_to_kitchen]
        kitchen_table = None
        if kitchen_lines and kitchen_table_id is not None:
            kitchen_table = self._tables.find_by_id(kitchen_table_id, tenant_id)
            if kitchen_table is None:
                raise NotFoundError("Mesa", kitchen_table_id, tenant_id=tenant_id)

        invoice = Invoice(
            tenant_id=tenant_id,
            client_id=client.id,
            user_id=user_id,
            date=utcnow(),
            total=invoice_total,
            payment_method=invoice_method,
            notes=(notes or "").strip() or None,
            order_id=order_id,
        )
        invoice.set_created_by(user_id, user_email)
        invoice.items = [
            InvoiceItem(
                product_id=line.product.id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit_price=line.price,
                unit=line.unit,
                subtotal=line.subtotal,
            )
            for line in lines
        ]
        invoice.payments = [
            InvoicePayment(method=p.method, amount=p.amount, reference=p.reference)
            for p in normalized
        ]
        self._db.add(invoice)
        self._db.flush()

        if kitchen_lines:
            order = self._send_to_kitchen(invoice, kitchen_lines, kitchen_table, user_id, user_email)
            invoice.order_id = order.id
            self._db.flush()

        logger.info(
            "Invoice created",
            invoice_id=invoice.id,
            tenant_id=tenant_id,
            total=str(invoice_total),
            payment_method=invoice_method,
            payments=len(normalized),
            kitchen_items=len(kitchen_lines),
        )
        return invoice

    def _price_lines(self, items: Sequence[InvoiceItemInput], tenant_id: int) -> list[InvoiceLine]:
        product_ids = list({item.product_id for item in items})
        products = {p.id: p for p in self._products.find_by_ids(product_ids, tenant_id)}
        for item in items:
            if item.product_id not in products:
                raise NotFoundError("Producto", item.product_id, tenant_id=tenant_id)

        lines = []
        for item in items:
            product = products[item.product_id]
            if item.quantity <= 0:
                raise ValidationError(
                    f"La cantidad de '{product.name}' debe ser mayor a 0", product_id=product.id
                )
            if item.price < 0:
                raise ValidationError(
                    f"El precio de '{product.name}' no puede ser negativo", product_id=product.id
                )
            unit = (item.unit or "").strip().upper()
            if unit not in Unit.ALL:
                raise ValidationError(f"Unidad inválida: {item.unit}", product_id=product.id)

            lines.append(
                InvoiceLine(
                    product=product,
                    quantity=item.quantity,
                    unit=unit,
                    price=quantize_money(item.price),
                    subtotal=line_subtotal(item.quantity, item.price, item.subtotal),
                    send_to_kitchen=item.send_to_kitchen,
                    note=(item.note or "").strip() or None,
                )
            )
        return lines

    def _check_total(self, lines: Sequence[InvoiceLine], given: Decimal | None) -> Decimal:
        total = quantize_money(sum((line.subtotal for line in lines), Decimal("0")))
        if given is not None and not money_equal(total, given):
            raise ValidationError(
                ErrorMessages.TOTAL_MISMATCH, expected=str(total), received=str(given)
            )
        if total <= 0:
            raise ValidationError(ErrorMessages.INVALID_TOTAL)
        return total

    def _send_to_kitchen(
        self,
        invoice: Invoice,
        lines: Sequence[InvoiceLine],
        table: DiningTable | None,
        user_id: int,
        user_email: str,
    ) -> Order:
        """
        Counter sale fan-out: an already invoiced order whose items go
        straight to the kitchen board as "enviado".
        """
        now = utcnow()
        order = Order(
            tenant_id=invoice.tenant_id,
            table_id=table.id if table else None,
            status=OrderStatus.INVOICED,
            invoice_id=invoice.id,
            opened_by_id=user_id,
            opened_at=now,
            closed_at=now,
        )
        order.set_created_by(user_id, user_email)
        order.items = [
            OrderItem(
                tenant_id=invoice.tenant_id,
                product_id=line.product.id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit=line.unit,
                price=line.price,
                subtotal=line.subtotal,
                note=line.note,
                status=ItemStatus.SENT,
                sent_at=now,
            )
            for line in lines
        ]
        self._db.add(order)
        self._db.flush()
        return order

    # =========================================================================
    # Queries
    # =========================================================================

    def list_invoices(
        self, tenant_id: int, filters: InvoiceFilters
    ) -> tuple[list[InvoiceSummary], int]:
        invoices = self._invoices.find_all(tenant_id, filters)
        return [to_summary(i) for i in invoices], self._invoices.count(tenant_id, filters)

    def get_detail(self, invoice_id: int, tenant_id: int) -> InvoiceDetail:
        invoice = self._invoices.find_detail(invoice_id, tenant_id)
        if invoice is None:
            raise NotFoundError("Factura", invoice_id, tenant_id=tenant_id)
        return self._detail(invoice)

    def get_receipt(self, invoice_id: int, tenant_id: int, return_to: str | None) -> InvoiceReceipt:
        detail = self.get_detail(invoice_id, tenant_id)
        tenant = self._db.get(Tenant, tenant_id)
        return InvoiceReceipt(
            **detail.model_dump(),
            business=BusinessHeader(
                name=tenant.name,
                address=tenant.address,
                phone=tenant.phone,
                tax_id=tenant.tax_id,
            ),
            return_to=safe_return_to(return_to),
        )

    def _detail(self, invoice: Invoice) -> InvoiceDetail:
        client = invoice.client
        return InvoiceDetail(
            invoice=InvoiceHeader(
                id=invoice.id,
                date=invoice.date,
                total=invoice.total,
                payment_method=invoice.payment_method,
                notes=invoice.notes,
            ),
            client=InvoiceClient(
                id=client.id,
                name=client.name,
                address=client.address,
                phone=client.phone,
                tax_id=client.tax_id,
            ),
            payments=[
                InvoicePaymentOutput(method=p.method, amount=p.amount, reference=p.reference)
                for p in invoice.payments
            ],
            products=[
                InvoiceLineOutput(
                    product_id=item.product_id,
                    name=item.product_name,
                    quantity=item.quantity,
                    unit=item.unit,
                    price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in invoice.items
            ],
        )
