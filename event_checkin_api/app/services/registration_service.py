"""
Business logic for registering and validating students.

``RegistrationService`` is the trust boundary of the system: it
re-validates every registration regardless of what the caller already
checked, issues student IDs, prevents duplicate e-mail addresses and
drives the one-way ``validated: false -> true`` transition.  All
storage access goes through the ``AttendeeStore`` passed to the
constructor.
"""

import logging
import random
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional

from event_checkin_api.app.core.config import Settings
from event_checkin_api.app.core.exceptions import (
    AlreadyValidatedError,
    DuplicateKeyError,
    DuplicateRegistrationError,
    IdGenerationError,
    StudentNotFoundError,
    ValidationError,
)
from event_checkin_api.app.core.store import AttendeeStore
from event_checkin_api.app.schemas.student import StudentCreate, StudentRead, StudentRole
from event_checkin_api.app.schemas.validation import (
    RecentScan,
    ScanMethod,
    ValidationOutcome,
    ValidationScan,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REQUIRED_FIELDS = ("name", "email", "phone", "college", "role")
ALL_ROLES = "all"
MAX_RECENT_SCANS = 100

NOT_FOUND_MESSAGE = "Student ID not found in the system"
VALIDATED_MESSAGE = "Student validated successfully!"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegistrationService:
    """Registration, lookup, search and validation of students."""

    def __init__(
        self,
        store: AttendeeStore,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock
        self.rng = rng or random.Random()
        self.logger = logging.getLogger(__name__)

    def generate_id(self) -> str:
        """Return ``<prefix>-<epoch ms>-<000..999>``.

        Two registrations in the same millisecond collide with a
        probability of 1 in 1000; ``register`` retries when the store
        rejects a duplicate ID.
        """
        timestamp = int(self.clock().timestamp() * 1000)
        suffix = f"{self.rng.randint(0, 999):03d}"
        return f"{self.settings.id_prefix}-{timestamp}-{suffix}"

    @staticmethod
    def _check_registration(data: StudentCreate) -> StudentCreate:
        """Return the registration with name, phone and college trimmed.

        E-mail and role are checked exactly as sent, so an e-mail with
        surrounding whitespace is rejected rather than normalised.
        """
        values = {field: (getattr(data, field) or "").strip() for field in REQUIRED_FIELDS}
        if not all(values.values()):
            raise ValidationError("All fields are required")
        if not EMAIL_RE.match(data.email):
            raise ValidationError("Invalid email format")
        if data.role not in StudentRole.values():
            raise ValidationError("Invalid role")
        return StudentCreate(**values)

    async def register(self, data: StudentCreate) -> StudentRead:
        """Register a new student.

        Raises ``ValidationError`` for missing or malformed fields,
        ``DuplicateRegistrationError`` if the e-mail is taken and
        ``IdGenerationError`` if no free ID was found within
        ``settings.id_generation_attempts`` attempts.
        """
        data = self._check_registration(data)
        if self.store.find_by_email(data.email):
            self.logger.warning("Rejected duplicate registration for %s", data.email)
            raise DuplicateRegistrationError()

        attempts = max(1, self.settings.id_generation_attempts)
        for attempt in range(1, attempts + 1):
            student_id = self.generate_id()
            student = StudentRead(
                id=student_id,
                name=data.name,
                email=data.email,
                phone=data.phone,
                college=data.college,
                role=StudentRole(data.role),
                registered_at=self.clock(),
                validated=False,
                qr_code_data=student_id,
            )
            try:
                stored = self.store.insert(student)
            except DuplicateKeyError as exc:
                if exc.field == "email":
                    # Lost a race against a concurrent registration.
                    self.logger.warning("Rejected duplicate registration for %s", data.email)
                    raise DuplicateRegistrationError() from exc
                self.logger.warning("Student ID %s already taken (attempt %s/%s)", student_id, attempt, attempts)
                continue
            self.logger.info("Registered student %s (%s)", stored.id, stored.email)
            return stored
        raise IdGenerationError()

    async def get(self, student_id: str) -> StudentRead:
        student = self.store.find_by_id(student_id)
        if student is None:
            raise StudentNotFoundError()
        return student

    async def search(self, query: Optional[str] = None, role: Optional[str] = None) -> List[StudentRead]:
        """Search students by free text and/or exact role.

        ``role`` of ``None``, ``""`` or ``"all"`` disables role filtering.
        With neither a query nor a role every student is returned.
        """
        if role in (None, "", ALL_ROLES):
            role = None
        elif role not in StudentRole.values():
            raise ValidationError("Invalid role")
        query = (query or "").strip()
        if not query and role is None:
            return self.store.list_all()
        return self.store.search(query, role)

    async def validate(
        self,
        student_id: str,
        method: str = ScanMethod.MANUAL.value,
        scanned_by: Optional[str] = None,
    ) -> ValidationOutcome:
        """Mark a student as entered, at most once.

        Raises ``StudentNotFoundError`` for unknown IDs and
        ``AlreadyValidatedError`` (carrying the stored record) when the
        student was validated before, including when a concurrent call
        won the conditional update.  On success exactly one scan entry
        is appended, in the same transaction as the flag update.
        """
        if method not in ScanMethod.values():
            raise ValidationError("Invalid validation method")
        student = self.store.find_by_id(student_id)
        if student is None:
            raise StudentNotFoundError(NOT_FOUND_MESSAGE)
        if student.validated:
            self.logger.info("Student %s already validated at %s", student_id, student.validated_at)
            raise AlreadyValidatedError(student)

        now = self.clock()
        with self.store.transaction():
            updated = self.store.update_validation(student_id, now)
            if updated is not None:
                self.store.append_scan(
                    ValidationScan(
                        student_id=student_id,
                        scanned_at=now,
                        method=ScanMethod(method),
                        scanned_by=scanned_by,
                    )
                )
        if updated is None:
            current = self.store.find_by_id(student_id)
            if current is None:
                raise StudentNotFoundError(NOT_FOUND_MESSAGE)
            self.logger.info("Student %s was validated concurrently", student_id)
            raise AlreadyValidatedError(current)

        self.logger.info("Validated student %s via %s", student_id, method)
        return ValidationOutcome(success=True, student=updated, message=VALIDATED_MESSAGE)

    async def recent_scans(self, limit: int = 10) -> List[RecentScan]:
        if limit < 1 or limit > MAX_RECENT_SCANS:
            raise ValidationError(f"limit must be between 1 and {MAX_RECENT_SCANS}")
        return self.store.recent_scans(limit)
