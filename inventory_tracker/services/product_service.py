import logging
from collections.abc import Mapping

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_tracker.errors import ConflictError, NotFoundError, SecondaryWriteFailure, ValidationError
from inventory_tracker.models.product import PRODUCT_STATUSES, Product, name_key_for
from inventory_tracker.models.user import User
from inventory_tracker.services import inventory_service, stock_service
from inventory_tracker.services.paging import page_offset

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "unit", "category", "brand")
UPDATABLE_FIELDS = REQUIRED_FIELDS + ("stock", "image")

SORT_COLUMNS = {
    "name": Product.name,
    "category": Product.category,
    "brand": Product.brand,
    "stock": Product.stock,
    "createdAt": Product.created_at,
}

DUPLICATE_NAME = "Product with this name already exists"


def _required_text(field: str, value) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{field.capitalize()} is required")
    return text


def _commit_or_conflict(db: Session) -> None:
    # The unique name_key column settles create/rename races
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(DUPLICATE_NAME) from e


def get_product(db: Session, product_id: str) -> Product | None:
    return db.query(Product).filter(Product.id == product_id).first()


def find_by_name_exact(db: Session, name: str) -> Product | None:
    return db.query(Product).filter(Product.name_key == name_key_for(name)).first()


def create_product(
    db: Session,
    fields: Mapping,
    actor: User,
    reason: str = stock_service.INITIAL_STOCK_REASON,
) -> Product:
    values = {field: _required_text(field, fields.get(field)) for field in REQUIRED_FIELDS}
    stock = stock_service.coerce_stock(fields.get("stock"))
    if find_by_name_exact(db, values["name"]):
        raise ConflictError(DUPLICATE_NAME)

    product = Product(
        **values,
        stock=stock,
        image=(fields.get("image") or "").strip(),
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.add(product)
    _commit_or_conflict(db)
    db.refresh(product)

    stock_service.record_stock_change(db, product, 0, stock, actor, reason)
    return product


def update_product(db: Session, product_id: str, changes: Mapping, actor: User) -> Product:
    product = get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    values = {field: _required_text(field, changes[field]) for field in REQUIRED_FIELDS if field in changes}
    if "image" in changes:
        values["image"] = (changes["image"] or "").strip()
    if "stock" in changes:
        values["stock"] = stock_service.coerce_stock(changes["stock"])

    if "name" in values:
        existing = find_by_name_exact(db, values["name"])
        if existing and existing.id != product.id:
            raise ConflictError(DUPLICATE_NAME)

    old_stock = product.stock
    for field, value in values.items():
        setattr(product, field, value)
    product.updated_by_id = actor.id
    _commit_or_conflict(db)
    db.refresh(product)

    if "stock" in values:
        stock_service.record_stock_change(
            db, product, old_stock, values["stock"], actor, stock_service.STOCK_UPDATE_REASON
        )
    return product


def delete_product(db: Session, product_id: str) -> None:
    product = get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    db.delete(product)
    db.commit()

    try:
        removed = inventory_service.delete_all_for_product(db, product_id)
    except SecondaryWriteFailure:
        logger.exception("Product %s deleted but its history was not", product_id)
        return
    logger.info("Deleted product %s and %d history entries", product_id, removed)


def list_products(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    category: str | None = None,
    status: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[list[Product], int]:
    offset = page_offset(page, limit)
    if sort_by not in SORT_COLUMNS:
        raise ValidationError("Invalid sort field")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("Sort order must be asc or desc")
    if status and status not in PRODUCT_STATUSES:
        raise ValidationError('Status must be "In Stock" or "Out of Stock"')

    q = db.query(Product)
    if search:
        q = q.filter(
            or_(
                Product.name.icontains(search, autoescape=True),
                Product.brand.icontains(search, autoescape=True),
                Product.category.icontains(search, autoescape=True),
            )
        )
    if category:
        q = q.filter(Product.category.icontains(category, autoescape=True))
    if status:
        q = q.filter(Product.status == status)

    total = q.count()
    column = SORT_COLUMNS[sort_by]
    order = column.asc() if sort_order == "asc" else column.desc()
    products = q.order_by(order, Product.id).offset(offset).limit(limit).all()
    return products, total


def list_categories(db: Session) -> list[str]:
    return [row[0] for row in db.query(Product.category).distinct().order_by(Product.category).all()]


def search_by_name(db: Session, name: str, limit: int = 20) -> list[Product]:
    return db.query(Product).filter(Product.name.icontains(name, autoescape=True)).limit(limit).all()


def list_all(db: Session) -> list[Product]:
    return db.query(Product).order_by(Product.created_at.desc()).all()
