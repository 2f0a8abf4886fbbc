"""
Pydantic schemas for dining tables, orders and the kitchen queue.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from pos_shared.utils.billing_schemas import PaymentInput
from pos_shared.utils.schemas import Money, Quantity, TableStatusValue


# =============================================================================
# Tables
# =============================================================================


class TableOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: int
    description: str | None = None
    status: str
    open_orders: int = 0


class TableCreate(BaseModel):
    number: int = Field(ge=1)
    description: str | None = Field(default=None, max_length=255)


class TableUpdate(BaseModel):
    number: int | None = Field(default=None, ge=1)
    description: str | None = Field(default=None, max_length=255)
    status: TableStatusValue | None = None


# =============================================================================
# Orders
# =============================================================================


class OrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int | None = None
    product_name: str
    quantity: Quantity
    unit: str
    price: Money
    subtotal: Money
    note: str | None = None
    status: str
    sent_at: datetime | None = None
    preparing_at: datetime | None = None
    ready_at: datetime | None = None
    served_at: datetime | None = None


class OrderOutput(BaseModel):
    id: int
    table_id: int | None = None
    table_number: int | None = None
    status: str
    invoice_id: int | None = None
    opened_at: datetime
    items: list[OrderItemOutput]
    total: Money


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(decimal_places=3)
    unit: str = "UND"
    # Defaults to the product price for the unit
    price: Decimal | None = Field(default=None, decimal_places=2)
    note: str | None = Field(default=None, max_length=255)


class OrderItemStatusUpdate(BaseModel):
    status: str


class OrderMove(BaseModel):
    target_table_id: int


class OrderSendResult(BaseModel):
    order_id: int
    sent: int


class OrderInvoiceCreate(BaseModel):
    client_id: int
    payment_method: str | None = None
    payments: list[PaymentInput] | None = None
    notes: str | None = Field(default=None, max_length=1000)


# =============================================================================
# Kitchen
# =============================================================================


class KitchenItemOutput(BaseModel):
    id: int
    order_id: int
    table_id: int | None = None
    table_number: int | None = None
    product_name: str
    quantity: Quantity
    unit: str
    note: str | None = None
    status: str
    sent_at: datetime | None = None
    preparing_at: datetime | None = None
    ready_at: datetime | None = None


class KitchenStatusUpdate(BaseModel):
    status: str


class KitchenStatusResult(BaseModel):
    id: int
    status: str
