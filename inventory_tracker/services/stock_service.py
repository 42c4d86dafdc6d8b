"""Ties product stock writes to the inventory history ledger.

Every path that changes ``Product.stock`` (create, update, CSV import) goes
through :func:`coerce_stock` before the write and :func:`record_stock_change`
after the product row is committed. A failed ledger write is logged and
swallowed: the product mutation has already succeeded and stays that way.
"""
import logging
import math
import re

from sqlalchemy.orm import Session

from inventory_tracker.errors import SecondaryWriteFailure, ValidationError
from inventory_tracker.models.inventory_history import InventoryHistory
from inventory_tracker.models.product import Product
from inventory_tracker.models.user import User
from inventory_tracker.services import inventory_service

logger = logging.getLogger(__name__)

INITIAL_STOCK_REASON = "Initial stock"
STOCK_UPDATE_REASON = "Stock update"
CSV_IMPORT_REASON = "CSV Import"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_stock(value) -> int:
    """Parse a stock value: leading integer digits, anything else is 0.

    ``"12"`` and ``"12 pcs"`` give 12, ``None``/``""``/``"abc"`` give 0.
    Negative results are rejected.
    """
    if value is None or isinstance(value, bool):
        number = 0
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else 0
    else:
        match = _LEADING_INT.match(str(value))
        number = int(match.group(1)) if match else 0
    if number < 0:
        raise ValidationError("Stock must be a non-negative integer")
    return number


def record_stock_change(
    db: Session,
    product: Product,
    old_quantity: int,
    new_quantity: int,
    actor: User,
    reason: str,
) -> InventoryHistory | None:
    """Append one ledger entry if the quantity moved; ``None`` otherwise or on ledger failure."""
    if new_quantity == old_quantity:
        return None
    try:
        return inventory_service.append_entry(
            db,
            product_id=product.id,
            product_name=product.name,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            user_id=actor.id,
            user_name=actor.name,
            reason=reason,
        )
    except SecondaryWriteFailure:
        logger.exception(
            "Stock change for product %s (%d -> %d) was not recorded", product.id, old_quantity, new_quantity
        )
        return None
