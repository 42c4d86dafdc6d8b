import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_tracker.database import Base, utcnow


class UserRole(str, PyEnum):
    ADMIN = "admin"
    STAFF = "staff"
    VIEWER = "viewer"


# Roles allowed to create, update, import or delete products
INVENTORY_WRITER_ROLES = {UserRole.ADMIN.value, UserRole.STAFF.value}


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, default=UserRole.STAFF.value)
    active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def can_edit_inventory(self) -> bool:
        return self.active and self.role in INVENTORY_WRITER_ROLES
