"""
Pydantic schemas for invoicing, reports and sales.

Amounts accept JSON numbers or numeric strings and are kept as Decimal;
the invoice service does the money checks (one cent of tolerance), so the
schemas only enforce shape and the decimal places the columns keep.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from pos_shared.utils.schemas import Money, Quantity


# =============================================================================
# Invoice Input
# =============================================================================


class InvoiceItemInput(BaseModel):
    """One line of an invoice request."""

    product_id: int
    # Stored as Numeric(12,3) and Numeric(12,2)
    quantity: Decimal = Field(decimal_places=3)
    unit: str = "UND"
    price: Decimal = Field(decimal_places=2)
    subtotal: Decimal | None = None
    # Also create a kitchen ticket for this line
    send_to_kitchen: bool = False
    note: str | None = Field(default=None, max_length=255)


class PaymentInput(BaseModel):
    """
    One payment entry. Method and amount are loosely typed on purpose:
    entries with an unknown method or a non-positive amount are dropped
    during normalization instead of failing the whole request.
    """

    method: str = ""
    amount: Decimal | str | None = None
    reference: str | None = Field(default=None, max_length=100)


class InvoiceCreate(BaseModel):
    client_id: int
    items: list[InvoiceItemInput] = Field(default_factory=list)
    total: Decimal | None = None
    # Legacy single-method field, used when no payments are sent
    payment_method: str | None = None
    payments: list[PaymentInput] | None = None
    table_id: int | None = None
    notes: str | None = Field(default=None, max_length=1000)


class InvoiceCreated(BaseModel):
    id: int
    total: Money
    payment_method: str


# =============================================================================
# Invoice Output
# =============================================================================


class InvoiceSummary(BaseModel):
    id: int
    date: datetime
    total: Money
    payment_method: str
    client_id: int
    client_name: str


class InvoiceHeader(BaseModel):
    id: int
    date: datetime
    total: Money
    payment_method: str
    notes: str | None = None


class InvoiceClient(BaseModel):
    id: int
    name: str
    address: str | None = None
    phone: str | None = None
    tax_id: str | None = None


class InvoicePaymentOutput(BaseModel):
    method: str
    amount: Money
    reference: str | None = None


class InvoiceLineOutput(BaseModel):
    product_id: int | None = None
    name: str
    quantity: Quantity
    unit: str
    price: Money
    subtotal: Money


class InvoiceDetail(BaseModel):
    invoice: InvoiceHeader
    client: InvoiceClient
    payments: list[InvoicePaymentOutput]
    products: list[InvoiceLineOutput]


class BusinessHeader(BaseModel):
    name: str
    address: str | None = None
    phone: str | None = None
    tax_id: str | None = None


class InvoiceReceipt(InvoiceDetail):
    business: BusinessHeader
    return_to: str


class InvoiceStats(BaseModel):
    count: int
    total: Money
    avg: Money
    min: Money
    max: Money
    by_payment_method: dict[str, Money]


class TopProductOutput(BaseModel):
    product_id: int | None = None
    name: str
    quantity: Quantity
    total: Money
    invoices: int


# =============================================================================
# Reports and Sales
# =============================================================================


class ReportSummary(BaseModel):
    date_from: str
    date_to: str
    count: int
    total: Money
    average: Money
    min: Money
    max: Money


class PaymentDistributionRow(BaseModel):
    method: str
    count: int
    total: Money


class SalesByDayRow(BaseModel):
    date: str
    count: int
    total: Money


class SalesTotals(BaseModel):
    efectivo: Money = Decimal("0")
    transferencia: Money = Decimal("0")
    tarjeta: Money = Decimal("0")
    general: Money = Decimal("0")


class SalesOutput(BaseModel):
    items: list[InvoiceSummary]
    totals: SalesTotals
    date_from: str
    date_to: str
