from inventory_tracker.config import settings
from inventory_tracker.errors import ValidationError


def page_offset(page: int, limit: int, max_limit: int | None = None) -> int:
    """Validate 1-based ``page``/``limit`` and return the row offset."""
    max_limit = max_limit or settings.MAX_PAGE_SIZE
    if page < 1:
        raise ValidationError("Page must be a positive integer")
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"Limit must be between 1 and {max_limit}")
    return (page - 1) * limit
