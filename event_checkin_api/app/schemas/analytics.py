"""
Pydantic models for the analytics report.
"""

from typing import List

from .base import CamelModel


class RoleStat(CamelModel):
    role: str
    total: int
    validated: int
    percentage: int


class CollegeStat(CamelModel):
    college: str
    count: int


class AnalyticsReport(CamelModel):
    total_students: int
    validated_students: int
    pending_students: int
    validation_rate: int
    role_stats: List[RoleStat]
    top_colleges: List[CollegeStat]
    recent_registrations: int
