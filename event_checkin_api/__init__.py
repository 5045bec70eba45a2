"""
Top‑level package for the Event Check-in API.

All functionality lives in submodules under ``app``; the ASGI
application is ``event_checkin_api.app.main:app``.
"""

__all__ = []
