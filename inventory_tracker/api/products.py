import time
from datetime import date

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from inventory_tracker.api.auth import get_current_user, require_inventory_writer
from inventory_tracker.config import settings
from inventory_tracker.database import get_db
from inventory_tracker.models.inventory_history import ChangeType, InventoryHistory
from inventory_tracker.models.product import Product
from inventory_tracker.models.user import User
from inventory_tracker.schemas.common import Message, Pagination, UserRef
from inventory_tracker.schemas.inventory import HistoryEntryOut, HistoryFilters, HistoryListOut, HistoryStats
from inventory_tracker.schemas.product import (
    ImportResult,
    ProductCreate,
    ProductListOut,
    ProductMutationOut,
    ProductOut,
    ProductRef,
    ProductSearchOut,
    ProductUpdate,
    SortField,
    SortOrder,
)
from inventory_tracker.services import csv_service, inventory_service, product_service, report_service

router = APIRouter(prefix="/products", tags=["Products"])


def _csv_response(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _history_entry(entry: InventoryHistory, product: Product | None, user: User | None) -> HistoryEntryOut:
    out = HistoryEntryOut.model_validate(entry)
    out.product = ProductRef.model_validate(product) if product else None
    out.user = UserRef.model_validate(user) if user else None
    return out


def _history_page(db: Session, filters: HistoryFilters, page: int, limit: int) -> HistoryListOut:
    rows, total = inventory_service.query_history(db, filters, page=page, limit=limit)
    stats = report_service.history_stats(db, filters)
    return HistoryListOut(
        history=[_history_entry(*row) for row in rows],
        pagination=Pagination.build(page, limit, total),
        stats=HistoryStats(**stats),
        filters=filters,
    )


@router.get("", response_model=ProductListOut)
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: str | None = None,
    category: str | None = None,
    status: str | None = Query(None, pattern="^(In Stock|Out of Stock)$"),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    products, total = product_service.list_products(
        db,
        page=page,
        limit=limit,
        search=(search or "").strip() or None,
        category=(category or "").strip() or None,
        status=status,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ProductListOut(
        products=[ProductOut.model_validate(p) for p in products],
        pagination=Pagination.build(page, limit, total),
        categories=product_service.list_categories(db),
    )


@router.get("/search", response_model=ProductSearchOut)
def search_products(name: str | None = None, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    name = (name or "").strip()
    if not name:
        raise HTTPException(400, "Search name parameter is required")
    products = product_service.search_by_name(db, name, limit=settings.SEARCH_RESULT_LIMIT)
    return ProductSearchOut(products=[ProductOut.model_validate(p) for p in products])


@router.get("/all-logs", response_model=HistoryListOut)
def all_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_HISTORY_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    product_id: str | None = Query(None, alias="productId"),
    change_type: ChangeType | None = Query(None, alias="changeType"),
    user_id: str | None = Query(None, alias="userId"),
    on_date: date | None = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filters = HistoryFilters(product_id=product_id, change_type=change_type, user_id=user_id, date=on_date)
    return _history_page(db, filters, page, limit)


@router.get("/export")
def export_products(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    content = csv_service.export_products_csv(db)
    return _csv_response(content, f"products-{int(time.time() * 1000)}.csv")


@router.get("/import-template")
def download_import_template(user: User = Depends(get_current_user)):
    return _csv_response(csv_service.import_template_csv(), "product_import_template.csv")


@router.post("/import", response_model=ImportResult)
def import_products(
    csv_file: UploadFile = File(..., alias="csvFile"),
    user: User = Depends(require_inventory_writer),
    db: Session = Depends(get_db),
):
    if not csv_file.filename or not csv_file.filename.lower().endswith(".csv"):
        raise HTTPException(400, "Only CSV files are allowed")

    raw = csv_file.file.read(settings.IMPORT_MAX_BYTES + 1)
    if len(raw) > settings.IMPORT_MAX_BYTES:
        raise HTTPException(413, "CSV file is too large")
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(400, "CSV file must be UTF-8 encoded")

    return csv_service.import_products_csv(db, content, user)


@router.post("", response_model=ProductMutationOut, status_code=201)
def create_product(data: ProductCreate, user: User = Depends(require_inventory_writer), db: Session = Depends(get_db)):
    product = product_service.create_product(db, data.model_dump(), user)
    return ProductMutationOut(message="Product created successfully", product=ProductOut.model_validate(product))


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    return product


@router.put("/{product_id}", response_model=ProductMutationOut)
@router.patch("/{product_id}", response_model=ProductMutationOut)
def update_product(
    product_id: str,
    data: ProductUpdate,
    user: User = Depends(require_inventory_writer),
    db: Session = Depends(get_db),
):
    product = product_service.update_product(db, product_id, data.model_dump(exclude_unset=True), user)
    return ProductMutationOut(message="Product updated successfully", product=ProductOut.model_validate(product))


@router.delete("/{product_id}", response_model=Message)
def delete_product(product_id: str, user: User = Depends(require_inventory_writer), db: Session = Depends(get_db)):
    product_service.delete_product(db, product_id)
    return Message(message="Product deleted successfully")


@router.get("/{product_id}/history", response_model=HistoryListOut)
def product_history(
    product_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_HISTORY_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not product_service.get_product(db, product_id):
        raise HTTPException(404, "Product not found")
    return _history_page(db, HistoryFilters(product_id=product_id), page, limit)
