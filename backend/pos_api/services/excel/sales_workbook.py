"""
Sales report workbook.
"""

from __future__ import annotations

from io import BytesIO
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Font

from pos_shared.utils.billing_schemas import InvoiceSummary, SalesTotals

SALES_HEADERS = ["Factura #", "Fecha", "Cliente", "Forma de Pago", "Total"]

_TOTAL_LABELS = [
    ("efectivo", "Total Efectivo"),
    ("transferencia", "Total Transferencia"),
    ("tarjeta", "Total Tarjeta"),
    ("general", "Total General"),
]


def build_sales_export(invoices: Iterable[InvoiceSummary], totals: SalesTotals) -> bytes:
    """
    One row per invoice, then a blank row and the per-method totals with
    the general total last.
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Ventas"

    sheet.append(SALES_HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for invoice in invoices:
        sheet.append([
            invoice.id,
            invoice.date.strftime("%Y-%m-%d %H:%M"),
            invoice.client_name,
            invoice.payment_method,
            float(invoice.total),
        ])

    sheet.append([])
    for field_name, label in _TOTAL_LABELS:
        sheet.append([None, None, None, label, float(getattr(totals, field_name))])
        sheet.cell(row=sheet.max_row, column=4).font = Font(bold=True)

    for column, width in zip("ABCDE", (12, 18, 32, 22, 14)):
        sheet.column_dimensions[column].width = width

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
