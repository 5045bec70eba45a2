"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers (students, validation,
analytics, health) under a unified prefix.  When new endpoints are
added, update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import analytics, health, students, validation

router = APIRouter()

router.include_router(students.router, prefix="/students", tags=["students"])
router.include_router(validation.router, prefix="/validate", tags=["validation"])
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
router.include_router(health.router, prefix="/health", tags=["health"])
