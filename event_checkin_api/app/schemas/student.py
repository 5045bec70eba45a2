"""
Pydantic models for registered students (event attendees).

``StudentCreate`` declares every field optional: presence,
email format and role are checked by ``RegistrationService`` so that a
missing field yields the same descriptive 400 response whether the
request came over HTTP or from another caller.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from .base import CamelModel


class StudentRole(str, Enum):
    PARTICIPANT = "participant"
    VOLUNTEER = "volunteer"
    ORGANIZER = "organizer"
    JUDGE = "judge"
    SPONSOR = "sponsor"

    @classmethod
    def values(cls) -> list[str]:
        return [role.value for role in cls]


class StudentCreate(CamelModel):
    """Schema for registering a student."""

    # A numeric phone in JSON is accepted and stored as its string form.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = Field(None, examples=["Ann Lee"])
    email: Optional[str] = Field(None, examples=["ann@example.com"])
    phone: Optional[str] = Field(None, examples=["+1 555 0100"])
    college: Optional[str] = Field(None, examples=["MIT"])
    role: Optional[str] = Field(None, examples=["participant"])


class StudentRead(CamelModel):
    """A stored attendee record."""

    id: str
    name: str
    email: str
    phone: str
    college: str
    role: StudentRole
    registered_at: datetime
    validated: bool = False
    validated_at: Optional[datetime] = None
    # Payload that clients encode into the attendee's QR code.
    qr_code_data: Optional[str] = None
    # Storage-assigned row reference; never serialised.
    pk: Optional[int] = Field(None, exclude=True)
