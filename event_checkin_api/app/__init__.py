"""
Application package initializer.

The project is organised in layers: ``core`` (settings, logging,
errors, database and the attendee store), ``services`` (registration,
validation and analytics rules), ``schemas`` (pydantic models) and
``api`` (versioned FastAPI routers).
"""
