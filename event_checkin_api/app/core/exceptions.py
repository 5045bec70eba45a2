"""
Domain errors raised by the store and the service layer.

All errors derive from ``CheckinError`` which itself is a
``ValueError``, so endpoint code can keep catching ``ValueError`` for
"the request was understood but cannot be fulfilled" cases.  Storage
failures (``sqlite3.Error``) are not wrapped and
propagate unchanged.
"""

from typing import Any, Optional


class CheckinError(ValueError):
    """Base class for business errors of the check-in service."""

    message = "Check-in request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class ValidationError(CheckinError):
    """Malformed or missing input (fields, email, role, method)."""

    message = "Invalid input"


class DuplicateRegistrationError(CheckinError):
    message = "Student with this email already exists"


class StudentNotFoundError(CheckinError):
    message = "Student not found"


class AlreadyValidatedError(CheckinError):
    """The student was validated before.

    Not a system error: the stored record is attached so callers can
    show who was admitted and when.
    """

    message = "Student has already been validated"

    def __init__(self, student: Any, message: Optional[str] = None) -> None:
        super().__init__(message)
        self.student = student


class IdGenerationError(CheckinError):
    message = "Could not generate a unique student ID"


class DuplicateKeyError(CheckinError):
    """Raised by the store when a unique column already holds the value."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Duplicate value for unique field '{field}'")
        self.field = field
