"""
Error kinds raised by the entity layer and the services.

Every kind carries the HTTP status the API layer replies with, so the
exception handlers in main.py never need to inspect exception classes by name.
"""


class BikeTrailsError(Exception):
    """Base class for all application errors"""

    status_code = 500

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        # Name of the offending field, when the error came from a setter
        self.field = field


class InvalidField(BikeTrailsError, ValueError):
    """Value has the wrong type or content (empty, unsafe, bad syntax)"""

    status_code = 400


class OutOfRange(BikeTrailsError, ValueError):
    """Value has the right shape but violates a length or numeric bound"""

    status_code = 400


class InvalidIdentifier(BikeTrailsError, ValueError):
    """Value is not a syntactically valid UUID"""

    status_code = 400


class NotFound(BikeTrailsError):
    status_code = 404


class Unauthorized(BikeTrailsError):
    """Missing session, missing/mismatched XSRF token, or acting on someone else's data"""

    status_code = 403


class PersistenceError(BikeTrailsError):
    """Store connectivity failure or a statement the store rejected"""

    status_code = 500


class ConflictError(PersistenceError):
    """Constraint violation: duplicate unique value or a foreign key in use"""

    status_code = 409
