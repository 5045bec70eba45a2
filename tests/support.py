"""Shared helpers for the test suite."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

from event_checkin_api.app.core.config import Settings
from event_checkin_api.app.core.db import Database
from event_checkin_api.app.core.store import AttendeeStore
from event_checkin_api.app.schemas.student import StudentCreate, StudentRead, StudentRole

T0 = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_settings(directory: str, **overrides) -> Settings:
    values = {"database_url": os.path.join(directory, "checkin.db"), "log_level": "WARNING"}
    values.update(overrides)
    return Settings(**values)


def open_store(directory: str) -> AttendeeStore:
    db = Database(os.path.join(directory, "checkin.db"))
    db.open()
    return AttendeeStore(db)


def student_data(**overrides) -> StudentCreate:
    values = {
        "name": "Ann",
        "email": "a@x.com",
        "phone": "555",
        "college": "MIT",
        "role": "participant",
    }
    values.update(overrides)
    return StudentCreate(**values)


def student_record(student_id: str, email: str, registered_at: datetime = T0, **overrides) -> StudentRead:
    values = {
        "id": student_id,
        "name": "Ann",
        "email": email,
        "phone": "555",
        "college": "MIT",
        "role": StudentRole.PARTICIPANT,
        "registered_at": registered_at,
        "qr_code_data": student_id,
    }
    values.update(overrides)
    return StudentRead(**values)


class TempDirMixin:
    def make_tempdir(self) -> str:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        return tmp.name
