"""Domain errors raised by the service layer.

The HTTP layer maps each of these to a status code in ``main.py``. Services
never raise ``HTTPException`` themselves.
"""


class InventoryError(Exception):
    """Base class for all inventory domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Malformed or missing input, rejected before any mutation."""

    status_code = 400


class PermissionDeniedError(InventoryError):
    status_code = 403


class NotFoundError(InventoryError):
    status_code = 404


class ConflictError(InventoryError):
    """A product with the same (case-insensitive) name already exists."""

    status_code = 409


class SecondaryWriteFailure(InventoryError):
    """A ledger write failed after the primary product mutation succeeded.

    Always caught inside the service layer: it is logged, never surfaced.
    """
