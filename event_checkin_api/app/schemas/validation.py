"""
Pydantic models for validating (checking in) students and for the
validation scan log.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import CamelModel
from .student import StudentRead


class ScanMethod(str, Enum):
    QR = "qr"
    MANUAL = "manual"

    @classmethod
    def values(cls) -> list[str]:
        return [method.value for method in cls]


class ValidationRequest(CamelModel):
    student_id: Optional[str] = Field(None, examples=["FEST-1718000000000-042"])
    method: str = Field(ScanMethod.MANUAL.value, examples=["qr"])
    scanned_by: Optional[str] = Field(
        None, description="Free-text label of the check-in desk or staff member"
    )


class ValidationOutcome(CamelModel):
    """Outcome of a validation attempt.

    ``student`` is present both on success and when the student had
    already been validated, so the caller can display who and when.
    """

    success: bool
    student: Optional[StudentRead] = None
    message: str


class ValidationScan(CamelModel):
    """One entry of the append-only validation log."""

    student_id: str
    scanned_at: datetime
    method: ScanMethod
    scanned_by: Optional[str] = None


class RecentScan(ValidationScan):
    student: StudentRead
