"""
FastAPI dependencies resolving the services attached to the running app.

``create_app`` stores one instance of each service on ``app.state``;
routes receive them through ``Depends`` so tests can build an app with
its own settings and database without touching module globals.
"""

from fastapi import Request

from event_checkin_api.app.core.db import Database
from event_checkin_api.app.services.analytics_service import AnalyticsService
from event_checkin_api.app.services.qr_service import QRCodeService
from event_checkin_api.app.services.registration_service import RegistrationService


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_registration_service(request: Request) -> RegistrationService:
    return request.app.state.registration_service


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service


def get_qr_service(request: Request) -> QRCodeService:
    return request.app.state.qr_service
