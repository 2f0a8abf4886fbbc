"""
Excel (.xlsx) workbooks built and parsed with openpyxl.
"""

from .product_workbook import (
    PRODUCT_COLUMNS,
    ProductRow,
    WorkbookError,
    build_product_export,
    build_product_template,
    read_product_rows,
)
from .sales_workbook import SALES_HEADERS, build_sales_export

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

__all__ = [
    "PRODUCT_COLUMNS",
    "ProductRow",
    "WorkbookError",
    "build_product_export",
    "build_product_template",
    "read_product_rows",
    "SALES_HEADERS",
    "build_sales_export",
    "XLSX_MEDIA_TYPE",
]
