import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, case
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from inventory_tracker.database import Base, utcnow
from inventory_tracker.models.user import User

IN_STOCK = "In Stock"
OUT_OF_STOCK = "Out of Stock"
PRODUCT_STATUSES = (IN_STOCK, OUT_OF_STOCK)


def status_for(stock: int) -> str:
    return IN_STOCK if stock > 0 else OUT_OF_STOCK


def name_key_for(name: str) -> str:
    """Comparison key for product names: trimmed and Unicode case-folded."""
    return name.strip().casefold()


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Case-insensitive uniqueness lives here so concurrent creates/renames cannot both win
    name_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    unit: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image: Mapped[str] = mapped_column(String, default="")

    created_by_id: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    created_by: Mapped[User | None] = relationship(User, foreign_keys=[created_by_id])
    updated_by: Mapped[User | None] = relationship(User, foreign_keys=[updated_by_id])

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = name_key_for(value)
        return value

    # Derived from stock on every read; there is no status column to drift.
    @hybrid_property
    def status(self) -> str:
        return status_for(self.stock or 0)

    @status.expression
    def status(cls):
        return case((cls.stock > 0, IN_STOCK), else_=OUT_OF_STOCK)

