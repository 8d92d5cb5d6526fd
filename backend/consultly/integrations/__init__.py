"""External service integrations for the Consultly platform."""

from .google_calendar_client import (
    FakeGoogleCalendarClient,
    GoogleCalendarClient,
    GoogleCalendarError,
    TokenGrant,
)

__all__ = ["FakeGoogleCalendarClient", "GoogleCalendarClient", "GoogleCalendarError", "TokenGrant"]
