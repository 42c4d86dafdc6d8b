"""Append-only inventory history ledger.

Entries are only ever inserted, read, or bulk-removed together with their
product. Every write failure surfaces as ``SecondaryWriteFailure`` so callers
can keep it apart from failures of the product mutation itself.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from inventory_tracker.config import settings
from inventory_tracker.errors import SecondaryWriteFailure
from inventory_tracker.models.inventory_history import DEFAULT_REASON, ChangeType, InventoryHistory
from inventory_tracker.models.product import Product
from inventory_tracker.models.user import User
from inventory_tracker.schemas.inventory import HistoryFilters
from inventory_tracker.services.paging import page_offset


def append_entry(
    db: Session,
    product_id: str,
    product_name: str,
    old_quantity: int,
    new_quantity: int,
    user_id: str,
    user_name: str,
    reason: str = DEFAULT_REASON,
) -> InventoryHistory:
    change_amount = new_quantity - old_quantity
    entry = InventoryHistory(
        product_id=product_id,
        product_name=product_name,
        old_quantity=old_quantity,
        new_quantity=new_quantity,
        change_amount=change_amount,
        change_type=ChangeType.from_amount(change_amount).value,
        reason=reason or DEFAULT_REASON,
        user_id=user_id,
        user_name=user_name,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise SecondaryWriteFailure(f"Could not record stock change for product {product_id}: {e}") from e
    db.refresh(entry)
    return entry


def delete_all_for_product(db: Session, product_id: str) -> int:
    try:
        removed = (
            db.query(InventoryHistory)
            .filter(InventoryHistory.product_id == product_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise SecondaryWriteFailure(f"Could not delete history for product {product_id}: {e}") from e
    return removed


def day_bounds(day: date, tz_name: str | None = None) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of a calendar day in ``tz_name`` as naive UTC."""
    tz = ZoneInfo(tz_name or settings.TIMEZONE)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def apply_filters(q: Query, filters: HistoryFilters, tz_name: str | None = None) -> Query:
    if filters.product_id:
        q = q.filter(InventoryHistory.product_id == filters.product_id)
    if filters.change_type:
        q = q.filter(InventoryHistory.change_type == ChangeType(filters.change_type).value)
    if filters.user_id:
        q = q.filter(InventoryHistory.user_id == filters.user_id)
    if filters.date:
        start, end = day_bounds(filters.date, tz_name)
        q = q.filter(InventoryHistory.created_at >= start, InventoryHistory.created_at < end)
    return q


def query_history(
    db: Session,
    filters: HistoryFilters,
    page: int = 1,
    limit: int = 20,
    tz_name: str | None = None,
) -> tuple[list[tuple[InventoryHistory, Product | None, User | None]], int]:
    """Newest-first page of entries, each joined with the current product and user rows."""
    offset = page_offset(page, limit)
    total = apply_filters(db.query(InventoryHistory), filters, tz_name).count()
    q = (
        db.query(InventoryHistory, Product, User)
        .outerjoin(Product, Product.id == InventoryHistory.product_id)
        .outerjoin(User, User.id == InventoryHistory.user_id)
    )
    rows = (
        apply_filters(q, filters, tz_name)
        .order_by(InventoryHistory.created_at.desc(), InventoryHistory.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [tuple(r) for r in rows], total
