"""
Custom exception classes for Garage Admin.

Services raise these; the API layer maps each one to a status code in
``garage_admin.main``. Timeouts and store errors are retryable, the rest are not.
"""


class GarageAdminError(Exception):
    """Base class for all domain errors."""

    default_message = "Error: request failed"
    retryable = False

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class PermissionDeniedError(GarageAdminError):
    """Raised when the caller's role lacks the capability an action needs."""

    default_message = "Error: forbidden"

    def __init__(self, message: str = None, capability: str = None) -> None:
        self.capability = capability
        super().__init__(message)


class RecordNotFoundError(GarageAdminError):
    """Raised when a customer, vehicle, work order or profile id does not exist."""

    default_message = "Error: record not found"


class DuplicateRecordError(GarageAdminError):
    """Raised when a unique field (customer email, license plate) is already taken."""

    default_message = "Error: record already exists"


class WorkOrderValidationError(GarageAdminError):
    """Raised when a work order is missing its vehicle or a line description."""

    default_message = "Error: invalid work order"


class InvalidQueryError(GarageAdminError):
    """Raised when a list query names a field or filter the view does not support."""

    default_message = "Error: invalid query"


class QueryTimeoutError(GarageAdminError):
    """Raised when a store call exceeds its time bound. Not the same as zero rows."""

    default_message = "Error: request timed out"
    retryable = True


class StoreError(GarageAdminError):
    """Raised when the database rejects or fails an operation."""

    default_message = "Error: database operation failed"
    retryable = True
