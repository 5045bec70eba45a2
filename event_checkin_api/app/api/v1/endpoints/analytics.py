"""
Analytics endpoint for API v1.
"""

from fastapi import APIRouter, Depends

from event_checkin_api.app.core.deps import get_analytics_service
from event_checkin_api.app.schemas.analytics import AnalyticsReport
from event_checkin_api.app.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/", response_model=AnalyticsReport)
async def analytics_snapshot(
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsReport:
    """Return registration and check-in statistics computed on demand."""
    return await service.snapshot()
