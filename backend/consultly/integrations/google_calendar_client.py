"""Minimal Google Calendar API client for busy-time sync."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import json
import logging
from typing import Any, Dict, List, Optional, cast
from urllib.parse import quote, urlencode
from uuid import uuid4

import httpx
from pydantic import SecretStr, ValidationError

from ..core.constants import (
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    GOOGLE_AUTH_URL,
    GOOGLE_CALENDAR_API_URL,
    GOOGLE_TOKEN_URL,
)
from ..schemas.calendar import CalendarEvent

logger = logging.getLogger(__name__)


class GoogleCalendarError(RuntimeError):
    """Raised when Google's OAuth or Calendar API responds with an error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    expires_at: datetime
    refresh_token: Optional[str] = None


def _expiry_from(payload: Dict[str, Any]) -> datetime:
    lifetime = int(payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
    return datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(seconds=lifetime)


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class GoogleCalendarClient:
    """
    Thin client for Google OAuth and the Calendar v3 REST API.

    Expiry datetimes are naive UTC, matching how tokens are stored.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str | SecretStr,
        redirect_uri: str,
        scope: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        secret_value = (
            client_secret.get_secret_value()
            if isinstance(client_secret, SecretStr)
            else client_secret
        )
        if not client_id or not secret_value:
            raise ValueError("Google OAuth client id and secret must be provided")

        self._client_id = client_id
        self._client_secret = secret_value
        self._redirect_uri = redirect_uri
        self._scope = scope
        self._timeout = timeout
        self._transport = transport

    def generate_auth_url(self, state: str) -> str:
        """Consent URL; offline access plus forced consent so Google always returns a refresh token."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": self._scope,
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> TokenGrant:
        payload = self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "redirect_uri": self._redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        return self._grant_from(payload)

    def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        payload = self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "refresh_token": refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "refresh_token",
            },
        )
        return self._grant_from(payload)

    def get_primary_calendar_id(self, access_token: str) -> Optional[str]:
        payload = self._request(
            "GET",
            f"{GOOGLE_CALENDAR_API_URL}/users/me/calendarList",
            access_token=access_token,
        )
        for item in payload.get("items") or []:
            if item.get("primary"):
                return cast(Optional[str], item.get("id"))
        return None

    def list_events(
        self,
        access_token: str,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
    ) -> List[CalendarEvent]:
        """Every event instance in ``[time_min, time_max)``, following pagination."""
        url = f"{GOOGLE_CALENDAR_API_URL}/calendars/{quote(calendar_id, safe='')}/events"
        params: Dict[str, Any] = {
            "timeMin": _rfc3339(time_min),
            "timeMax": _rfc3339(time_max),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 250,
        }
        events: List[CalendarEvent] = []
        while True:
            payload = self._request("GET", url, params=params, access_token=access_token)
            for raw in payload.get("items") or []:
                try:
                    events.append(CalendarEvent.model_validate(raw))
                except ValidationError as exc:
                    logger.warning(
                        "Skipping malformed calendar event %s: %s", raw.get("id"), exc.errors()
                    )
            page_token = payload.get("nextPageToken")
            if not page_token:
                return events
            params["pageToken"] = page_token

    def _grant_from(self, payload: Dict[str, Any]) -> TokenGrant:
        access_token = payload.get("access_token")
        if not access_token:
            raise GoogleCalendarError("Google token response did not include an access token")
        return TokenGrant(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            expires_at=_expiry_from(payload),
        )

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
        data: Dict[str, Any] | None = None,
        access_token: str | None = None,
    ) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = client.request(method, url, params=params, data=data, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                error_type: str | None = None
                try:
                    body = exc.response.json()
                    if isinstance(body, dict):
                        error = body.get("error")
                        error_type = error.get("status") if isinstance(error, dict) else error
                except json.JSONDecodeError:
                    pass
                logger.error(
                    "Google API error %s for %s %s: %s",
                    status,
                    method,
                    url,
                    exc.response.text[:500],
                )
                raise GoogleCalendarError(
                    f"Google API responded with status {status}",
                    status_code=status,
                    error_type=error_type,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("Google request failure for %s %s: %s", method, url, str(exc))
                raise GoogleCalendarError("Failed to reach Google API") from exc

        try:
            return cast(Dict[str, Any], response.json())
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON from Google for %s %s", method, url)
            raise GoogleCalendarError("Received malformed JSON from Google") from exc


class FakeGoogleCalendarClient(GoogleCalendarClient):
    """In-memory stand-in for non-production environments and tests."""

    def __init__(self, events: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(
            client_id="fake-google-client",
            client_secret="fake-google-secret",
            redirect_uri="http://localhost/api/v1/calendar/callback",
            scope="https://www.googleapis.com/auth/calendar.readonly",
        )
        self.events: List[Dict[str, Any]] = list(events or [])
        self.fail_refresh = False
        self.fail_list = False
        self._logger = logging.getLogger(self.__class__.__name__)

    def exchange_code(self, code: str) -> TokenGrant:
        self._logger.debug("Fake code exchange", extra={"code": code})
        return TokenGrant(
            access_token=f"fake-access-{uuid4().hex}",
            refresh_token=f"fake-refresh-{uuid4().hex}",
            expires_at=_expiry_from({}),
        )

    def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        if self.fail_refresh:
            raise GoogleCalendarError("invalid_grant", status_code=400, error_type="invalid_grant")
        return TokenGrant(access_token=f"fake-access-{uuid4().hex}", expires_at=_expiry_from({}))

    def get_primary_calendar_id(self, access_token: str) -> Optional[str]:
        return "primary@fake.calendar"

    def list_events(
        self,
        access_token: str,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
    ) -> List[CalendarEvent]:
        if self.fail_list:
            raise GoogleCalendarError("Google API responded with status 503", status_code=503)
        return [CalendarEvent.model_validate(raw) for raw in self.events]
