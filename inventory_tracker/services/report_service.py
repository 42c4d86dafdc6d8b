from sqlalchemy import case, func
from sqlalchemy.orm import Session

from inventory_tracker.models.inventory_history import ChangeType, InventoryHistory
from inventory_tracker.models.product import IN_STOCK, OUT_OF_STOCK, Product
from inventory_tracker.schemas.inventory import HistoryFilters
from inventory_tracker.services.inventory_service import apply_filters


def history_stats(db: Session, filters: HistoryFilters, tz_name: str | None = None) -> dict:
    """Aggregate over exactly the entries matching ``filters``; zeros when none match."""
    amount = InventoryHistory.change_amount
    q = db.query(
        func.count(InventoryHistory.id),
        func.sum(case((InventoryHistory.change_type == ChangeType.INCREASE.value, amount), else_=0)),
        func.sum(case((InventoryHistory.change_type == ChangeType.DECREASE.value, func.abs(amount)), else_=0)),
        func.avg(func.abs(amount)),
    )
    total, increase, decrease, avg = apply_filters(q, filters, tz_name).one()

    return {
        "total_changes": int(total or 0),
        "total_increase": int(increase or 0),
        "total_decrease": int(decrease or 0),
        "avg_change_amount": float(avg or 0),
    }


def inventory_summary(db: Session) -> dict:
    """Catalog totals, recomputed from current stock on every call."""
    in_stock = func.sum(case((Product.stock > 0, 1), else_=0))
    total_products, total_units, in_stock_count = db.query(
        func.count(Product.id), func.coalesce(func.sum(Product.stock), 0), func.coalesce(in_stock, 0)
    ).one()

    by_category = (
        db.query(
            Product.category,
            func.count(Product.id).label("product_count"),
            func.sum(Product.stock).label("total_units"),
            func.sum(case((Product.stock > 0, 1), else_=0)).label("in_stock_count"),
        )
        .group_by(Product.category)
        .order_by(Product.category)
        .all()
    )

    return {
        "total_products": int(total_products),
        "total_units_in_stock": int(total_units),
        "status_counts": {
            IN_STOCK: int(in_stock_count),
            OUT_OF_STOCK: int(total_products) - int(in_stock_count),
        },
        "by_category": [
            {
                "category": r.category,
                "product_count": int(r.product_count),
                "total_units": int(r.total_units or 0),
                "in_stock_count": int(r.in_stock_count or 0),
            }
            for r in by_category
        ],
    }
