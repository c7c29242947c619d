"""Google Calendar data client.

Wraps the discovery-based Calendar service from google-api-python-client
and holds the request context (the current access token). Blocking
``execute()`` calls run in a worker thread so the event loop stays free.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from gcal_session.config import PRIMARY_CALENDAR
from gcal_session.exceptions import CalendarConnectionError, LoadError
from gcal_session.loader import DATA_SDK, SdkDescriptor, SdkLoader

logger = logging.getLogger(__name__)


class DataClient:
    """Calendar API client built from the discovery document.

    Usage:
        client = DataClient(SdkLoader())
        await client.init(api_key, DISCOVERY_URL)
        client.set_token({"access_token": "..."})
        result = await client.list_events(timeMin="2026-01-01T00:00:00Z")
    """

    def __init__(self, loader: SdkLoader, sdk: SdkDescriptor = DATA_SDK) -> None:
        self._loader = loader
        self._sdk = sdk
        self._service: Any = None
        self._token: dict[str, Any] | None = None
        self.ready = False

    async def init(self, api_key: str | None, discovery_url: str) -> None:
        """Load the data SDK and build the Calendar service.

        Args:
            api_key: Application API key.
            discovery_url: URL of the Calendar API discovery document.

        Raises:
            CalendarConnectionError: If the SDK cannot be loaded or the service
                cannot be built. The client stays not ready.
        """
        try:
            await self._loader.ensure_loaded(self._sdk)
            discovery = self._loader.module(self._sdk)
            self._service = await asyncio.to_thread(
                discovery.build,
                "calendar",
                "v3",
                developerKey=api_key,
                discoveryServiceUrl=discovery_url,
                static_discovery=False,
                cache_discovery=False,
            )
        except LoadError as e:
            raise CalendarConnectionError(str(e)) from e
        except Exception as e:
            logger.error(f"Failed to build Calendar service: {e}")
            raise CalendarConnectionError(f"Failed to build Calendar service: {e}") from e

        self.ready = True
        logger.info("Calendar data client ready")

    # =========================================================================
    # Request context
    # =========================================================================

    def set_token(self, token: dict[str, Any] | None) -> None:
        """Install (or clear, with None) the access token used for requests."""
        self._token = token

    def get_token(self) -> dict[str, Any] | None:
        """Return the currently installed token, if any."""
        return self._token

    def _build_http(self) -> Any:
        """Create a fresh HTTP object authorized with the current token.

        httplib2 connections are not thread-safe, so every request gets its own.
        """
        from googleapiclient.http import build_http

        http = build_http()
        if not self._token:
            return http

        from google.oauth2.credentials import Credentials as GoogleCredentials
        from google_auth_httplib2 import AuthorizedHttp

        creds = GoogleCredentials(token=self._token["access_token"])
        return AuthorizedHttp(creds, http=http)

    async def _execute(self, request: Any) -> Any:
        return await asyncio.to_thread(request.execute, http=self._build_http())

    def _events(self) -> Any:
        if self._service is None:
            raise CalendarConnectionError("Calendar data client is not initialized")
        return self._service.events()

    # =========================================================================
    # Events
    # =========================================================================

    async def list_events(self, calendar_id: str = PRIMARY_CALENDAR, **params: Any) -> dict:
        """Call events.list and return the raw response."""
        request = self._events().list(calendarId=calendar_id, **params)
        return await self._execute(request)

    async def insert_event(self, body: dict, calendar_id: str = PRIMARY_CALENDAR) -> dict:
        """Call events.insert and return the created event resource."""
        request = self._events().insert(calendarId=calendar_id, body=body)
        return await self._execute(request)

    async def delete_event(self, event_id: str, calendar_id: str = PRIMARY_CALENDAR) -> None:
        """Call events.delete."""
        request = self._events().delete(calendarId=calendar_id, eventId=event_id)
        await self._execute(request)
