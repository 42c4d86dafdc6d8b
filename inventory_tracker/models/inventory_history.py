import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_tracker.database import Base, utcnow


class ChangeType(str, PyEnum):
    INCREASE = "increase"
    DECREASE = "decrease"
    ADJUSTMENT = "adjustment"

    @classmethod
    def from_amount(cls, change_amount: int) -> "ChangeType":
        if change_amount > 0:
            return cls.INCREASE
        if change_amount < 0:
            return cls.DECREASE
        return cls.ADJUSTMENT


DEFAULT_REASON = "Manual update"


class InventoryHistory(Base):
    """One immutable record of a single stock-quantity change.

    ``product_name`` and ``user_name`` are copied at write time and are not
    updated when the product or user is later renamed. ``product_id`` is not a
    foreign key: the product row is removed before its history is.
    """

    __tablename__ = "inventory_history"
    __table_args__ = (
        CheckConstraint("old_quantity >= 0", name="ck_history_old_quantity_non_negative"),
        CheckConstraint("new_quantity >= 0", name="ck_history_new_quantity_non_negative"),
        Index("ix_inventory_history_product_created", "product_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id: Mapped[str] = mapped_column(String, nullable=False)
    product_name: Mapped[str] = mapped_column(String, nullable=False)
    old_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    change_amount: Mapped[int] = mapped_column(Integer, nullable=False)  # positive=in, negative=out
    change_type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    reason: Mapped[str] = mapped_column(String, default=DEFAULT_REASON)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
