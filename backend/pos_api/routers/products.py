"""
Product catalog endpoints, including the Excel template, import and export.

Fixed paths (/search, /template, /import, /export) are declared before
/{product_id} so they are not captured as ids.
"""

from io import BytesIO
from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pos_api.repositories import ProductFilters
from pos_api.routers._common import Pagination, get_pagination, update_payload
from pos_api.services.domain import ProductService
from pos_api.services.excel import XLSX_MEDIA_TYPE
from pos_shared.config.constants import ALL_STAFF_ROLES, BILLING_ROLES, MANAGEMENT_ROLES
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import (
    current_user_context,
    get_user_email,
    get_user_id,
    require_roles,
    require_tenant,
)
from pos_shared.utils.admin_schemas import (
    ProductCreate,
    ProductImportResult,
    ProductOutput,
    ProductUpdate,
)
from pos_shared.utils.schemas import DeleteResponse, Page


router = APIRouter(prefix="/api/products", tags=["products"])


def xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=Page[ProductOutput])
def list_products(
    category_id: int | None = None,
    q: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> Page[ProductOutput]:
    require_roles(ctx, ALL_STAFF_ROLES)
    filters = ProductFilters(
        limit=pagination.limit,
        offset=pagination.offset,
        search=q,
        category_id=category_id,
    )
    items, total = ProductService(db).list_products(require_tenant(ctx), filters)
    return Page(items=items, pagination=pagination.info(total))


@router.get("/search", response_model=list[ProductOutput])
def search_products(
    q: str = "",
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[ProductOutput]:
    """Name or code match for the point-of-sale autocomplete (max 20)."""
    require_roles(ctx, ALL_STAFF_ROLES)
    return ProductService(db).search(require_tenant(ctx), q)


@router.get("/template")
def download_template(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StreamingResponse:
    require_roles(ctx, MANAGEMENT_ROLES)
    require_tenant(ctx)
    return xlsx_response(ProductService(db).template_workbook(), "plantilla_productos.xlsx")


@router.post("/import", response_model=ProductImportResult)
async def import_products(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductImportResult:
    """
    Upsert products by code from an .xlsx upload.
    Invalid rows are skipped and reported with their row number.
    """
    require_roles(ctx, MANAGEMENT_ROLES)
    tenant_id = require_tenant(ctx)
    # One byte past the limit is enough for the size check
    content = await file.read(settings.max_upload_bytes + 1)
    return ProductService(db).import_workbook(
        content, tenant_id, get_user_id(ctx), get_user_email(ctx)
    )


@router.get("/export")
def export_products(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StreamingResponse:
    require_roles(ctx, BILLING_ROLES)
    content = ProductService(db).export_workbook(require_tenant(ctx))
    return xlsx_response(content, "productos.xlsx")


@router.get("/{product_id}", response_model=ProductOutput)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    require_roles(ctx, ALL_STAFF_ROLES)
    return ProductService(db).get_by_id(product_id, require_tenant(ctx))


@router.post("", response_model=ProductOutput, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    """Create a product. Counts against the plan's max_products."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).create(
        body.model_dump(), require_tenant(ctx), get_user_id(ctx), get_user_email(ctx)
    )


@router.put("/{product_id}", response_model=ProductOutput)
def update_product(
    product_id: int,
    body: ProductUpdate,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).update(
        product_id,
        update_payload(body, nullable=["description", "category_id"]),
        require_tenant(ctx),
        get_user_id(ctx),
        get_user_email(ctx),
    )


@router.delete("/{product_id}", response_model=DeleteResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DeleteResponse:
    require_roles(ctx, MANAGEMENT_ROLES)
    ProductService(db).delete(product_id, require_tenant(ctx), get_user_id(ctx), get_user_email(ctx))
    return DeleteResponse(id=product_id)
