import math

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

# Shared model_config: snake_case attributes, camelCase JSON
CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True, "from_attributes": True}


class UserRef(BaseModel):
    id: str
    name: str
    email: str

    model_config = CAMEL_CONFIG


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_records: int
    has_next_page: bool
    has_prev_page: bool

    model_config = CAMEL_CONFIG

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_records=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class Message(BaseModel):
    message: str
