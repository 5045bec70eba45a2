"""
Service layer for check-in statistics.

The report is computed from the store on every request; nothing is
cached or materialised.  Total and validated counts come from a single
query so ``validated_students + pending_students`` always equals
``total_students``.  Percentages are rounded half up.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from event_checkin_api.app.core.config import Settings
from event_checkin_api.app.core.store import AttendeeStore
from event_checkin_api.app.schemas.analytics import AnalyticsReport, CollegeStat, RoleStat


def percentage(part: int, whole: int) -> int:
    """Return ``part / whole`` as a whole percentage, ``0`` if ``whole`` is 0."""
    if whole <= 0:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


class AnalyticsService:
    """Aggregated metrics over registered students."""

    def __init__(
        self,
        store: AttendeeStore,
        settings: Settings,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def role_stats(self) -> List[RoleStat]:
        stats = [
            RoleStat(
                role=row["role"],
                total=row["total"],
                validated=row["validated"],
                percentage=percentage(row["validated"], row["total"]),
            )
            for row in self.store.role_breakdown()
        ]
        stats.sort(key=lambda stat: (-stat.total, stat.role))
        return stats

    def top_colleges(self) -> List[CollegeStat]:
        rows = self.store.college_counts(self.settings.top_colleges_limit)
        return [CollegeStat(college=row["college"], count=row["count"]) for row in rows]

    async def snapshot(self) -> AnalyticsReport:
        """Return the current analytics report."""
        total, validated = self.store.count_by_validation()
        since = self.clock() - timedelta(hours=self.settings.recent_window_hours)
        report = AnalyticsReport(
            total_students=total,
            validated_students=validated,
            pending_students=total - validated,
            validation_rate=percentage(validated, total),
            role_stats=self.role_stats(),
            top_colleges=self.top_colleges(),
            recent_registrations=self.store.count_registered_since(since),
        )
        self.logger.debug("Analytics snapshot: %s of %s validated", validated, total)
        return report
