"""
Product catalog workbooks: import template, export, and import parsing.

Sheet "Productos" columns:
    codigo | nombre | descripcion | categoria_id | precio_kg | precio_unidad | precio_libra
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException

from pos_api.models import Product

PRODUCTS_SHEET = "Productos"
INSTRUCTIONS_SHEET = "Instrucciones"

PRODUCT_COLUMNS = [
    "codigo",
    "nombre",
    "descripcion",
    "categoria_id",
    "precio_kg",
    "precio_unidad",
    "precio_libra",
]

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="3498DB", end_color="3498DB", fill_type="solid")

_EXAMPLE_ROWS = [
    ["P001", "Pechuga de pollo", "Pechuga sin hueso", None, 18500, 0, 8400],
    ["B010", "Limonada natural", "Vaso 16 oz", None, 0, 6000, 0],
]

_INSTRUCTIONS = [
    "Instrucciones para importar productos",
    "",
    "1. Complete la hoja 'Productos' a partir de la fila 2. No cambie los encabezados.",
    "2. 'codigo' y 'nombre' son obligatorios. El código identifica el producto:",
    "   si ya existe se actualiza, si no existe se crea.",
    "3. 'categoria_id' es opcional. Si no corresponde a una categoría del restaurante se ignora.",
    "4. Los precios no pueden ser negativos y al menos uno debe ser mayor a 0.",
    "   Use 0 para las unidades en que no vende el producto.",
    "5. Las filas con errores se omiten y se informan al finalizar la importación.",
]


class WorkbookError(ValueError):
    """The uploaded file is not a readable .xlsx workbook."""


@dataclass
class ProductRow:
    """One data row of the import sheet, values as read from the cell."""

    row: int  # 1-based sheet row number, as the user sees it
    values: dict[str, Any]

    def text(self, column: str) -> str:
        value = self.values.get(column)
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()


def _style_header(sheet) -> None:
    for cell in sheet[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
    for index, column in enumerate(PRODUCT_COLUMNS, start=1):
        sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = max(
            14, len(column) + 4
        )


def _to_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_product_template() -> bytes:
    workbook = Workbook()
    instructions = workbook.active
    instructions.title = INSTRUCTIONS_SHEET
    for line in _INSTRUCTIONS:
        instructions.append([line])
    instructions["A1"].font = Font(bold=True, size=13)
    instructions.column_dimensions["A"].width = 95

    sheet = workbook.create_sheet(PRODUCTS_SHEET)
    sheet.append(PRODUCT_COLUMNS)
    for row in _EXAMPLE_ROWS:
        sheet.append(row)
    _style_header(sheet)
    return _to_bytes(workbook)


def build_product_export(products: Iterable[Product]) -> bytes:
    """Catalog in the import layout, so an export can be edited and re-imported."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = PRODUCTS_SHEET
    sheet.append(PRODUCT_COLUMNS)
    for product in products:
        sheet.append([
            product.code,
            product.name,
            product.description,
            product.category_id,
            float(product.price_kg),
            float(product.price_unit),
            float(product.price_lb),
        ])
    _style_header(sheet)
    return _to_bytes(workbook)


def read_product_rows(content: bytes, max_rows: int) -> list[ProductRow]:
    """
    Parse the import workbook.

    Reads the "Productos" sheet, or the first sheet when it is missing.
    The header row maps columns by name, so column order does not matter.
    Blank rows are dropped.

    Raises:
        WorkbookError: unreadable file, missing required columns, or more
            than max_rows data rows.
    """
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise WorkbookError("El archivo no es un Excel (.xlsx) válido") from e

    try:
        if PRODUCTS_SHEET in workbook.sheetnames:
            sheet = workbook[PRODUCTS_SHEET]
        else:
            sheet = workbook.worksheets[0]

        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            raise WorkbookError("El archivo está vacío")

        columns = [str(h).strip().lower() if h is not None else "" for h in header]
        for required in ("codigo", "nombre"):
            if required not in columns:
                raise WorkbookError(f"Falta la columna obligatoria '{required}'")

        result: list[ProductRow] = []
        for row_number, raw in enumerate(rows, start=2):
            if raw is None or all(v is None or str(v).strip() == "" for v in raw):
                continue
            values = {
                column: raw[index]
                for index, column in enumerate(columns)
                if column in PRODUCT_COLUMNS and index < len(raw)
            }
            result.append(ProductRow(row=row_number, values=values))
            if len(result) > max_rows:
                raise WorkbookError(f"El archivo supera el máximo de {max_rows} filas")
        return result
    finally:
        workbook.close()
