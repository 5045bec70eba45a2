"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a local SQLite file and no further setup.  Tests
and embedders may construct their own ``Settings`` instance and pass
it to ``create_app`` instead of relying on the process environment.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Event Check-in API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE") or None

    # Path to the SQLite database file.  Relative paths are resolved
    # against the package root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "event_checkin.db")

    # Namespace token placed in front of every generated student ID,
    # e.g. ``FEST-1718000000000-042``.
    id_prefix: str = os.getenv("STUDENT_ID_PREFIX", "FEST")

    # How many times registration regenerates an ID after the store
    # rejects it as already taken.
    id_generation_attempts: int = int(os.getenv("ID_GENERATION_ATTEMPTS", "5"))

    top_colleges_limit: int = int(os.getenv("TOP_COLLEGES_LIMIT", "5"))
    recent_window_hours: int = int(os.getenv("RECENT_WINDOW_HOURS", "24"))

    host: str = os.getenv("APP_HOST", "0.0.0.0")
    port: int = int(os.getenv("APP_PORT", "8000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
