"""
Identity and record store for students and validation scans.

``AttendeeStore`` is the only component that talks SQL.  It enforces
the storage-level guarantees the service relies on:

* ``id`` and ``email`` are unique columns; violating either raises
  ``DuplicateKeyError`` naming the column.
* ``update_validation`` is a single conditional ``UPDATE`` (compare and
  set on ``validated = 0``), so of two concurrent validations of the
  same student exactly one changes the row.
* The scan log is append-only.

Lookups return ``None`` for missing rows instead of raising.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from event_checkin_api.app.core.db import Database, from_db_timestamp, to_db_timestamp
from event_checkin_api.app.core.exceptions import DuplicateKeyError
from event_checkin_api.app.schemas.student import StudentRead
from event_checkin_api.app.schemas.validation import RecentScan, ValidationScan

logger = logging.getLogger(__name__)

STUDENT_COLUMNS = (
    "pk",
    "id",
    "name",
    "email",
    "phone",
    "college",
    "role",
    "registered_at",
    "validated",
    "validated_at",
    "qr_code_data",
)
_SELECT_STUDENT = f"SELECT {', '.join(STUDENT_COLUMNS)} FROM students"
_NEWEST_FIRST = "ORDER BY registered_at DESC, pk DESC"
_SEARCH_FIELDS = ("name", "id", "college", "email")


def _row_to_student(row: sqlite3.Row, prefix: str = "") -> StudentRead:
    return StudentRead(
        pk=row[f"{prefix}pk"],
        id=row[f"{prefix}id"],
        name=row[f"{prefix}name"],
        email=row[f"{prefix}email"],
        phone=row[f"{prefix}phone"],
        college=row[f"{prefix}college"],
        role=row[f"{prefix}role"],
        registered_at=from_db_timestamp(row[f"{prefix}registered_at"]),
        validated=bool(row[f"{prefix}validated"]),
        validated_at=from_db_timestamp(row[f"{prefix}validated_at"]),
        qr_code_data=row[f"{prefix}qr_code_data"],
    )


class AttendeeStore:
    """SQLite-backed storage of students and their validation scans."""

    def __init__(self, db: Database) -> None:
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator["AttendeeStore"]:
        """Group several store writes into one atomic unit."""
        with self.db.transaction():
            yield self

    # Students

    def insert(self, student: StudentRead) -> StudentRead:
        """Persist a new student and return it with its row reference."""
        try:
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO students
                        (id, name, email, phone, college, role, registered_at,
                         validated, validated_at, qr_code_data)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        student.id,
                        student.name,
                        student.email,
                        student.phone,
                        student.college,
                        student.role.value,
                        to_db_timestamp(student.registered_at),
                        int(student.validated),
                        to_db_timestamp(student.validated_at) if student.validated_at else None,
                        student.qr_code_data,
                    ),
                )
                pk = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            message = str(exc)
            if "UNIQUE constraint failed" not in message:
                raise
            # "UNIQUE constraint failed: students.email"
            raise DuplicateKeyError(message.rsplit(".", 1)[-1]) from exc
        return student.model_copy(update={"pk": pk})

    def find_by_id(self, student_id: str) -> Optional[StudentRead]:
        row = self.db.fetchone(f"{_SELECT_STUDENT} WHERE id = ?", (student_id,))
        return _row_to_student(row) if row else None

    def find_by_email(self, email: str) -> Optional[StudentRead]:
        row = self.db.fetchone(f"{_SELECT_STUDENT} WHERE email = ?", (email,))
        return _row_to_student(row) if row else None

    def update_validation(self, student_id: str, validated_at: datetime) -> Optional[StudentRead]:
        """Mark a student validated if, and only if, it is not validated yet.

        Returns the updated record, or ``None`` when no row satisfied the
        precondition (unknown ID or already validated).
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE students SET validated = 1, validated_at = ? WHERE id = ? AND validated = 0",
                (to_db_timestamp(validated_at), student_id),
            )
            if cursor.rowcount != 1:
                return None
            row = conn.execute(f"{_SELECT_STUDENT} WHERE id = ?", (student_id,)).fetchone()
        return _row_to_student(row)

    def search(self, query: str, role: Optional[str] = None) -> List[StudentRead]:
        """Case-insensitive substring search over name, id, college and email.

        Both sides are compared after Unicode case folding and the query is
        matched literally.  An empty ``query`` matches every student;
        ``role`` restricts to an exact role.
        """
        clause = " OR ".join(f"instr(casefold({field}), ?) > 0" for field in _SEARCH_FIELDS)
        params: list = [query.casefold()] * len(_SEARCH_FIELDS)
        sql = f"{_SELECT_STUDENT} WHERE ({clause})"
        if role:
            sql += " AND role = ?"
            params.append(role)
        rows = self.db.fetchall(f"{sql} {_NEWEST_FIRST}", params)
        return [_row_to_student(row) for row in rows]

    def list_all(self) -> List[StudentRead]:
        rows = self.db.fetchall(f"{_SELECT_STUDENT} {_NEWEST_FIRST}")
        return [_row_to_student(row) for row in rows]

    # Validation scans

    def append_scan(self, scan: ValidationScan) -> ValidationScan:
        with self.db.transaction() as conn:
            conn.execute(
                "INSERT INTO validation_scans (student_id, scanned_at, method, scanned_by) VALUES (?, ?, ?, ?)",
                (scan.student_id, to_db_timestamp(scan.scanned_at), scan.method.value, scan.scanned_by),
            )
        return scan

    def count_scans(self, student_id: Optional[str] = None) -> int:
        if student_id is None:
            row = self.db.fetchone("SELECT COUNT(*) FROM validation_scans")
        else:
            row = self.db.fetchone("SELECT COUNT(*) FROM validation_scans WHERE student_id = ?", (student_id,))
        return row[0]

    def recent_scans(self, limit: int) -> List[RecentScan]:
        """Return the latest ``limit`` scans joined with their students.

        Scans whose student cannot be found are skipped, so fewer than
        ``limit`` entries may be returned.
        """
        student_cols = ", ".join(f"st.{col} AS st_{col}" for col in STUDENT_COLUMNS)
        rows = self.db.fetchall(
            f"""
            SELECT sc.student_id, sc.scanned_at, sc.method, sc.scanned_by, {student_cols}
            FROM (
                SELECT * FROM validation_scans ORDER BY scanned_at DESC, pk DESC LIMIT ?
            ) AS sc
            LEFT JOIN students AS st ON st.id = sc.student_id
            ORDER BY sc.scanned_at DESC, sc.pk DESC
            """,
            (limit,),
        )
        scans: List[RecentScan] = []
        for row in rows:
            if row["st_pk"] is None:
                logger.debug("Skipping scan of unknown student %s", row["student_id"])
                continue
            scans.append(
                RecentScan(
                    student_id=row["student_id"],
                    scanned_at=from_db_timestamp(row["scanned_at"]),
                    method=row["method"],
                    scanned_by=row["scanned_by"],
                    student=_row_to_student(row, prefix="st_"),
                )
            )
        return scans

    # Aggregates

    def count_by_validation(self) -> Tuple[int, int]:
        """Return ``(total, validated)`` read in a single statement."""
        row = self.db.fetchone(
            "SELECT COUNT(*) AS total, COALESCE(SUM(validated), 0) AS validated FROM students"
        )
        return row["total"], row["validated"]

    def role_breakdown(self) -> List[Dict[str, Any]]:
        rows = self.db.fetchall(
            "SELECT role, COUNT(*) AS total, COALESCE(SUM(validated), 0) AS validated "
            "FROM students GROUP BY role"
        )
        return [dict(row) for row in rows]

    def college_counts(self, limit: int) -> List[Dict[str, Any]]:
        rows = self.db.fetchall(
            "SELECT college, COUNT(*) AS count FROM students "
            "GROUP BY college ORDER BY count DESC, college ASC LIMIT ?",
            (limit,),
        )
        return [dict(row) for row in rows]

    def count_registered_since(self, since: datetime) -> int:
        row = self.db.fetchone(
            "SELECT COUNT(*) FROM students WHERE registered_at >= ?",
            (to_db_timestamp(since),),
        )
        return row[0]
