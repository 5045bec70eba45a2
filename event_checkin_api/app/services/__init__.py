"""
Service layer.

Services hold the business rules and work on an ``AttendeeStore``
handed to them at construction time, so HTTP handlers and tests can
use them without a running server.
"""
