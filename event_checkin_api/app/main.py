"""
Main entrypoint for the Event Check-in API.

This module assembles the FastAPI application, sets up logging, wires
the database, store and services together and includes the versioned
routers.  ``create_app`` builds and configures the app, which is then
instantiated at module import time as ``app`` so it can be served
with uvicorn::

    uvicorn event_checkin_api.app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import Settings, settings
from .core.db import Database
from .core.logging_config import setup_logging
from .core.store import AttendeeStore
from .services.analytics_service import AnalyticsService
from .services.qr_service import QRCodeService
from .services.registration_service import RegistrationService

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the ones read from the environment.

    Returns
    -------
    FastAPI
        A configured application.  The database is opened when the
        lifespan starts and closed when it ends.
    """
    app_settings = app_settings or settings
    setup_logging(app_settings.log_level, app_settings.log_file)

    database = Database(app_settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Creates the database file if needed and applies migrations.
        database.open()
        logger.info("%s %s started", app_settings.project_name, app_settings.api_version)
        try:
            yield
        finally:
            database.close()

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.include_router(v1_router, prefix="/api/v1")

    store = AttendeeStore(database)
    app.state.db = database
    app.state.registration_service = RegistrationService(store, app_settings)
    app.state.analytics_service = AnalyticsService(store, app_settings)
    app.state.qr_service = QRCodeService()

    return app


app = create_app()
