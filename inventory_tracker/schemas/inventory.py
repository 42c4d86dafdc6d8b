import datetime as dt

from pydantic import BaseModel

from inventory_tracker.models.inventory_history import ChangeType
from inventory_tracker.schemas.common import CAMEL_CONFIG, Pagination, UserRef
from inventory_tracker.schemas.product import ProductRef


class HistoryFilters(BaseModel):
    """Predicate shared by the ledger query and its statistics."""

    product_id: str | None = None
    change_type: ChangeType | None = None
    user_id: str | None = None
    date: dt.date | None = None

    model_config = CAMEL_CONFIG


class HistoryEntryOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    old_quantity: int
    new_quantity: int
    change_amount: int
    change_type: ChangeType
    reason: str
    user_id: str
    user_name: str
    created_at: dt.datetime
    # Current state of the referenced rows; None once they are gone
    user: UserRef | None = None
    product: ProductRef | None = None

    model_config = CAMEL_CONFIG


class HistoryStats(BaseModel):
    total_changes: int = 0
    total_increase: int = 0
    total_decrease: int = 0
    avg_change_amount: float = 0.0

    model_config = CAMEL_CONFIG


class HistoryListOut(BaseModel):
    history: list[HistoryEntryOut]
    pagination: Pagination
    stats: HistoryStats
    filters: HistoryFilters

    model_config = CAMEL_CONFIG
