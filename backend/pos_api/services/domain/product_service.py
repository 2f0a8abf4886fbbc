"""
Product Service - Catalog management and Excel import/export.

Business rules:
- Codes are unique per restaurant among active products
- Prices are never negative and at least one is greater than 0
- The category, when given, must belong to the restaurant
- The plan's max_products quota applies to new products, imports included
- Products on items of open orders cannot be deleted until the order is closed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.orm import Session

from pos_api.models import Product
from pos_api.repositories import (
    ProductFilters,
    get_category_repository,
    get_order_repository,
    get_product_repository,
)
from pos_api.services.base_service import BaseCRUDService
from pos_api.services.domain.plan_limit_service import PlanLimitService
from pos_api.services.excel import (
    ProductRow,
    WorkbookError,
    build_product_export,
    build_product_template,
    read_product_rows,
)
from pos_shared.config.constants import Limits, PlanResource
from pos_shared.config.logging import catalog_logger as logger
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.admin_schemas import (
    ProductImportResult,
    ProductImportRowError,
    ProductOutput,
)
from pos_shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from pos_shared.utils.validators import quantize_money, to_decimal

PRICE_FIELDS = ("price_kg", "price_unit", "price_lb")

# Workbook column -> model field
_IMPORT_PRICE_COLUMNS = {
    "precio_kg": "price_kg",
    "precio_unidad": "price_unit",
    "precio_libra": "price_lb",
}


def check_prices(prices: dict[str, Decimal]) -> str | None:
    """Return the error message for an invalid price set, None when valid."""
    if any(p < 0 for p in prices.values()):
        return "Los precios no pueden ser negativos"
    if not any(p > 0 for p in prices.values()):
        return "Debe indicar al menos un precio mayor a 0"
    return None


@dataclass
class _ImportPlan:
    inserts: list[dict[str, Any]] = field(default_factory=list)
    updates: list[tuple[Product, dict[str, Any]]] = field(default_factory=list)
    skipped: list[ProductImportRowError] = field(default_factory=list)


class ProductService(BaseCRUDService[Product, ProductOutput]):
    def __init__(self, db: Session):
        super().__init__(
            db=db,
            repo=get_product_repository(db),
            output_schema=ProductOutput,
            entity_name="Producto",
        )
        self._categories = get_category_repository(db)
        self._plans = PlanLimitService(db)
        self._orders = get_order_repository(db)

    # =========================================================================
    # Queries
    # =========================================================================

    def list_products(
        self, tenant_id: int, filters: ProductFilters
    ) -> tuple[list[ProductOutput], int]:
        return self.list_all(tenant_id, filters), self.count(tenant_id, filters)

    def search(self, tenant_id: int, term: str) -> list[ProductOutput]:
        term = (term or "").strip()
        if not term:
            return []
        products = self._repo.search(tenant_id, term, Limits.SEARCH_RESULTS)
        return [self.to_output(p) for p in products]

    def to_output(self, entity: Product) -> ProductOutput:
        output = ProductOutput.model_validate(entity)
        output.category_name = entity.category.name if entity.category else None
        return output

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], tenant_id: int) -> None:
        if self._repo.find_by_code(tenant_id, data["code"]):
            raise DuplicateEntityError("Producto", data["code"])
        self._check_category(data.get("category_id"), tenant_id)
        self._check_prices({f: data.get(f) or Decimal("0") for f in PRICE_FIELDS})
        self._plans.check_limit(tenant_id, PlanResource.PRODUCTS)

    def _validate_update(self, entity: Product, data: dict[str, Any], tenant_id: int) -> None:
        for required in ("code", "name", *PRICE_FIELDS):
            if required in data and data[required] is None:
                data.pop(required)
        if data.get("code"):
            data["code"] = data["code"].strip()
            existing = self._repo.find_by_code(tenant_id, data["code"])
            if existing is not None and existing.id != entity.id:
                raise DuplicateEntityError("Producto", data["code"])
        if "category_id" in data:
            self._check_category(data["category_id"], tenant_id)
        self._check_prices({f: data.get(f, getattr(entity, f)) for f in PRICE_FIELDS})

    def _validate_delete(self, entity: Product, tenant_id: int) -> None:
        in_use = self._orders.count_open_items_for_product(entity.id, tenant_id)
        if in_use:
            raise ValidationError(
                f"No se puede eliminar el producto porque tiene {in_use} ítem(s) en pedidos abiertos"
            )

    def _check_category(self, category_id: int | None, tenant_id: int) -> None:
        if category_id is not None and not self._categories.exists(category_id, tenant_id):
            raise NotFoundError("Categoría", category_id, tenant_id=tenant_id)

    def _check_prices(self, prices: dict[str, Decimal]) -> None:
        error = check_prices(prices)
        if error:
            raise ValidationError(error)

    # =========================================================================
    # Excel
    # =========================================================================

    def template_workbook(self) -> bytes:
        return build_product_template()

    def export_workbook(self, tenant_id: int) -> bytes:
        return build_product_export(self._repo.find_all_for_export(tenant_id))

    def import_workbook(
        self, content: bytes, tenant_id: int, user_id: int, user_email: str
    ) -> ProductImportResult:
        """
        Upsert products by code from an uploaded workbook, in one transaction.

        Invalid rows are skipped and reported; the rest are applied. The
        plan quota is checked against the number of new products before
        anything is written.
        """
        if not content:
            raise ValidationError("El archivo está vacío")
        if len(content) > settings.max_upload_bytes:
            raise ValidationError("El archivo excede el tamaño máximo permitido")

        try:
            rows = read_product_rows(content, settings.max_import_rows)
        except WorkbookError as e:
            raise ValidationError(str(e))

        plan = self._plan_import(rows, tenant_id)
        self._plans.check_limit(tenant_id, PlanResource.PRODUCTS, adding=len(plan.inserts))

        try:
            for product, values in plan.updates:
                for field_name, value in values.items():
                    setattr(product, field_name, value)
                product.set_updated_by(user_id, user_email)
            for values in plan.inserts:
                product = Product(tenant_id=tenant_id, **values)
                product.set_created_by(user_id, user_email)
                self._db.add(product)
            self._db.flush()
            safe_commit(self._db)
        except Exception:
            self._db.rollback()
            raise

        logger.info(
            "Products imported",
            tenant_id=tenant_id,
            inserted=len(plan.inserts),
            updated=len(plan.updates),
            skipped=len(plan.skipped),
        )
        return ProductImportResult(
            inserted=len(plan.inserts),
            updated=len(plan.updates),
            skipped=plan.skipped,
        )

    def _plan_import(self, rows: Sequence[ProductRow], tenant_id: int) -> _ImportPlan:
        plan = _ImportPlan()
        existing = self._repo.find_by_codes(tenant_id, [r.text("codigo") for r in rows])
        valid_categories = self._categories.active_ids(tenant_id)
        # Later rows with the same code win over earlier ones
        pending_inserts: dict[str, dict[str, Any]] = {}

        for row in rows:
            values, error = self._row_values(row, valid_categories)
            if error:
                plan.skipped.append(ProductImportRowError(row=row.row, error=error))
                continue

            code = values["code"]
            if code in existing:
                plan.updates.append((existing[code], values))
            elif code in pending_inserts:
                pending_inserts[code].update(values)
            else:
                pending_inserts[code] = values

        plan.inserts = list(pending_inserts.values())
        return plan

    def _row_values(
        self, row: ProductRow, valid_categories: set[int]
    ) -> tuple[dict[str, Any], str | None]:
        code = row.text("codigo")
        name = row.text("nombre")
        if not code or not name:
            return {}, "Código y nombre son obligatorios"
        if len(code) > Limits.MAX_CODE_LENGTH:
            return {}, f"El código supera {Limits.MAX_CODE_LENGTH} caracteres"
        if len(name) > 150:
            return {}, "El nombre supera 150 caracteres"

        prices: dict[str, Decimal] = {}
        for column, field_name in _IMPORT_PRICE_COLUMNS.items():
            raw = row.values.get(column)
            price = to_decimal(raw, default=Decimal("0") if raw in (None, "") else None)
            if price is None:
                return {}, f"Precio inválido en '{column}'"
            prices[field_name] = quantize_money(price)
        error = check_prices(prices)
        if error:
            return {}, error

        # Unknown categories are dropped, not fatal
        category_id = to_decimal(row.values.get("categoria_id"))
        category = int(category_id) if category_id is not None else None
        if category not in valid_categories:
            category = None

        description = row.text("descripcion") or None
        return {
            "code": code,
            "name": name,
            "description": description[: Limits.MAX_DESCRIPTION_LENGTH] if description else None,
            "category_id": category,
            **prices,
        }, None
