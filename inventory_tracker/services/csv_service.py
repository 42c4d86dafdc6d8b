import csv
import io
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_tracker.config import settings
from inventory_tracker.errors import ConflictError, InventoryError
from inventory_tracker.models.user import User
from inventory_tracker.schemas.product import ImportDuplicate, ImportResult, ImportRowError, ProductRef
from inventory_tracker.services import product_service, stock_service

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["name", "unit", "category", "brand", "stock", "status", "image", "createdAt", "updatedAt"]
IMPORT_COLUMNS = ["name", "unit", "category", "brand", "stock", "status", "image"]

MISSING_FIELDS = "Missing required fields (name, unit, category, brand)"


def _iso(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.replace(tzinfo=timezone.utc).isoformat()


def export_products_csv(db: Session) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    for p in product_service.list_all(db):
        writer.writerow([
            p.name, p.unit, p.category, p.brand, p.stock, p.status, p.image,
            _iso(p.created_at), _iso(p.updated_at),
        ])
    return buf.getvalue()


def import_template_csv() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(IMPORT_COLUMNS)
    writer.writerow(["Claw Hammer", "pcs", "Tools", "Acme", "25", "In Stock", ""])
    writer.writerow(["Wood Screws 4x40", "box", "Fasteners", "Spax", "0", "Out of Stock", ""])
    writer.writerow(["Portland Cement", "kg", "Building Materials", "Holcim", "500", "", ""])
    return buf.getvalue()


def import_products_csv(
    db: Session,
    content: str,
    actor: User,
    error_preview: int | None = None,
    duplicate_preview: int | None = None,
) -> ImportResult:
    """Create one product per CSV row; rows are independent of each other.

    Rows missing a required field or carrying a negative stock are reported in
    ``errors``; rows whose name already exists (case-insensitive) are reported
    in ``duplicates`` and leave the existing product untouched. The ``status``
    column is ignored since status always follows stock.
    """
    error_preview = settings.IMPORT_ERROR_PREVIEW if error_preview is None else error_preview
    duplicate_preview = settings.IMPORT_DUPLICATE_PREVIEW if duplicate_preview is None else duplicate_preview

    errors: list[ImportRowError] = []
    duplicates: list[ImportDuplicate] = []
    success_count = 0

    reader = csv.DictReader(io.StringIO(content))
    for line, raw in enumerate(reader, start=2):
        # Extra cells land under a None key
        row = {k: v for k, v in raw.items() if k is not None}
        name, unit, category, brand = (
            (row.get(field) or "").strip() for field in product_service.REQUIRED_FIELDS
        )

        if not (name and unit and category and brand):
            errors.append(ImportRowError(line=line, data=row, error=MISSING_FIELDS))
            continue

        try:
            stock = stock_service.coerce_stock(row.get("stock"))
        except InventoryError:
            errors.append(ImportRowError(line=line, data=row, error="Stock must be non-negative"))
            continue

        existing = product_service.find_by_name_exact(db, name)
        if existing:
            duplicates.append(
                ImportDuplicate(line=line, csv_data=row, existing_product=ProductRef.model_validate(existing))
            )
            continue

        fields = {
            "name": name,
            "unit": unit,
            "category": category,
            "brand": brand,
            "stock": stock,
            "image": row.get("image") or "",
        }
        try:
            product_service.create_product(db, fields, actor, reason=stock_service.CSV_IMPORT_REASON)
        except ConflictError as e:
            # Lost a race with another writer for the same name
            existing = product_service.find_by_name_exact(db, name)
            if existing:
                duplicates.append(
                    ImportDuplicate(line=line, csv_data=row, existing_product=ProductRef.model_validate(existing))
                )
            else:
                errors.append(ImportRowError(line=line, data=row, error=e.message))
            continue
        except InventoryError as e:
            errors.append(ImportRowError(line=line, data=row, error=e.message))
            continue
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("CSV import line %d failed: %s", line, e)
            errors.append(ImportRowError(line=line, data=row, error="Could not save product"))
            continue
        success_count += 1

    logger.info(
        "CSV import by %s: %d created, %d duplicates, %d errors",
        actor.id, success_count, len(duplicates), len(errors),
    )
    return ImportResult(
        success_count=success_count,
        skip_count=len(duplicates),
        error_count=len(errors),
        errors=errors[:error_preview],
        duplicates=duplicates[:duplicate_preview],
    )
