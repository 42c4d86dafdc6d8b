from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from inventory_tracker.api.auth import get_current_user
from inventory_tracker.database import get_db
from inventory_tracker.models.inventory_history import ChangeType
from inventory_tracker.models.user import User
from inventory_tracker.schemas.inventory import HistoryFilters, HistoryStats
from inventory_tracker.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/inventory")
def inventory_report(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return report_service.inventory_summary(db)


@router.get("/history-stats", response_model=HistoryStats)
def history_stats_report(
    product_id: str | None = Query(None, alias="productId"),
    change_type: ChangeType | None = Query(None, alias="changeType"),
    user_id: str | None = Query(None, alias="userId"),
    on_date: date | None = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filters = HistoryFilters(product_id=product_id, change_type=change_type, user_id=user_id, date=on_date)
    return HistoryStats(**report_service.history_stats(db, filters))
