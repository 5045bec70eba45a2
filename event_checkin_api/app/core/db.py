"""
SQLite database integration and simple migration system.

``Database`` owns a single SQLite connection for the lifetime of the
application.  It is opened when the FastAPI lifespan starts and
closed when it ends, and it is handed explicitly to the store instead of
being reached through module-level helpers.  All statements run under
a re-entrant lock, so the connection can be shared between the event
loop and worker threads.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

MIGRATIONS: List[tuple[int, str]] = [
    # Migration 1: attendee records and the validation scan log
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS students (
            pk INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            phone TEXT NOT NULL,
            college TEXT NOT NULL,
            role TEXT NOT NULL
                CHECK (role IN ('participant', 'volunteer', 'organizer', 'judge', 'sponsor')),
            registered_at TEXT NOT NULL,
            validated INTEGER NOT NULL DEFAULT 0,
            validated_at TEXT,
            CHECK ((validated = 1) = (validated_at IS NOT NULL))
        );

        CREATE INDEX IF NOT EXISTS idx_students_registered_at
            ON students (registered_at);

        -- Append-only: rows are never updated or deleted.  There is no
        -- foreign key on student_id; readers skip scans whose student
        -- cannot be found.
        CREATE TABLE IF NOT EXISTS validation_scans (
            pk INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id TEXT NOT NULL,
            scanned_at TEXT NOT NULL,
            method TEXT NOT NULL CHECK (method IN ('qr', 'manual'))
        );

        CREATE INDEX IF NOT EXISTS idx_validation_scans_scanned_at
            ON validation_scans (scanned_at);
        """,
    ),
    # Migration 2: QR payload on students and the optional station label on scans
    (
        2,
        """
        ALTER TABLE students ADD COLUMN qr_code_data TEXT;
        ALTER TABLE validation_scans ADD COLUMN scanned_by TEXT;
        """,
    ),
]


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths and ``:memory:`` are used as is.  Relative paths are
    resolved against the project root (the directory holding the
    ``event_checkin_api`` package).
    """
    if database_url == MEMORY_DATABASE or os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # event_checkin_api/
    return str((base_dir / database_url).resolve())


def to_db_timestamp(value: datetime) -> str:
    """Serialise a datetime as a fixed-width UTC ISO string.

    Every stored timestamp has the same shape, so string comparison in
    SQL orders them chronologically.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _casefold(value: Optional[str]) -> Optional[str]:
    """Unicode case folding, registered as the SQL function ``casefold``."""
    return value.casefold() if value is not None else None


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class Database:
    """A lazily opened SQLite connection with transaction support."""

    def __init__(self, database_url: str) -> None:
        self.path = get_database_path(database_url)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """Open the connection and apply pending migrations."""
        with self._lock:
            if self._conn is not None:
                return
            if self.path != MEMORY_DATABASE:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            # isolation_level=None: no implicit BEGIN, transactions are
            # opened explicitly by ``transaction``.
            conn = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            self._conn = conn
            logger.info("Opened database %s", self.path)
            self.init_db()

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            logger.info("Closed database %s", self.path)

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database is not open")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements in one write transaction.

        Nested calls join the outermost transaction; only the outermost
        block commits or rolls back.
        """
        with self._lock:
            conn = self.connection
            outermost = self._depth == 0
            if outermost:
                conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield conn
            except BaseException:
                self._depth -= 1
                if outermost:
                    conn.execute("ROLLBACK")
                raise
            else:
                self._depth -= 1
                if outermost:
                    conn.execute("COMMIT")

    def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.connection.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self.connection.execute(sql, params).fetchall()

    def ping(self) -> None:
        """Raise if the database cannot answer a trivial query."""
        self.fetchone("SELECT 1")

    def init_db(self) -> None:
        """Create the ``migrations`` table and apply pending migrations.

        To change the schema, append a migration with an incremented
        version number to ``MIGRATIONS``.
        """
        with self._lock:
            conn = self.connection
            conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = conn.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    conn.executescript(sql)
                    conn.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    current_version = version
                    logger.info("Applied database migration %s", version)
