from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from inventory_tracker.schemas.common import CAMEL_CONFIG, Pagination, UserRef

_INPUT_CONFIG = {"alias_generator": to_camel, "populate_by_name": True, "str_strip_whitespace": True}

SortField = Literal["name", "category", "brand", "stock", "createdAt"]
SortOrder = Literal["asc", "desc"]


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    category: str = Field(min_length=1)
    brand: str = Field(min_length=1)
    stock: int = Field(ge=0)
    image: str = ""

    model_config = _INPUT_CONFIG


class ProductUpdate(BaseModel):
    # status is not accepted here: it is always derived from stock
    name: str | None = Field(None, min_length=1)
    unit: str | None = Field(None, min_length=1)
    category: str | None = Field(None, min_length=1)
    brand: str | None = Field(None, min_length=1)
    stock: int | None = Field(None, ge=0)
    image: str | None = None

    model_config = _INPUT_CONFIG

    @field_validator("name", "unit", "category", "brand", "stock", mode="before")
    @classmethod
    def _not_null(cls, value):
        # Omit a field to leave it unchanged; null is not a value for it
        if value is None:
            raise ValueError("must not be null")
        return value


class ProductOut(BaseModel):
    id: str
    name: str
    unit: str
    category: str
    brand: str
    stock: int
    status: str
    image: str = ""
    created_by: UserRef | None = None
    updated_by: UserRef | None = None
    created_at: datetime
    updated_at: datetime

    model_config = CAMEL_CONFIG


class ProductRef(BaseModel):
    id: str
    name: str
    unit: str = ""
    category: str
    brand: str
    stock: int | None = None
    image: str = ""

    model_config = CAMEL_CONFIG


class ProductListOut(BaseModel):
    products: list[ProductOut]
    pagination: Pagination
    categories: list[str]

    model_config = CAMEL_CONFIG


class ProductSearchOut(BaseModel):
    products: list[ProductOut]


class ProductMutationOut(BaseModel):
    message: str
    product: ProductOut


# --- CSV import ---

class ImportRowError(BaseModel):
    line: int
    data: dict[str, str | None]
    error: str


class ImportDuplicate(BaseModel):
    line: int
    csv_data: dict[str, str | None]
    existing_product: ProductRef

    model_config = CAMEL_CONFIG


class ImportResult(BaseModel):
    message: str = "Import completed"
    success_count: int = 0
    skip_count: int = 0
    error_count: int = 0
    errors: list[ImportRowError] = []
    duplicates: list[ImportDuplicate] = []

    model_config = CAMEL_CONFIG
