"""
Health check endpoint.
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from event_checkin_api.app.core.db import Database
from event_checkin_api.app.core.deps import get_database

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def health(db: Database = Depends(get_database)):
    try:
        db.ping()
    except (sqlite3.Error, RuntimeError) as e:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"service": "event-checkin", "status": "unhealthy", "error": str(e)},
        )
    return {"service": "event-checkin", "status": "healthy"}
