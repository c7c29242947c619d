"""Event synchronization against the primary calendar.

Every operation is a no-op while signed out. After each successful
mutation the local event list is refreshed in full from the server.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

from gcal_session.config import MAX_RESULTS, PRIMARY_CALENDAR, Settings
from gcal_session.data_client import DataClient
from gcal_session.exceptions import SyncError
from gcal_session.models import CalendarEvent, EventDraft
from gcal_session.session import SessionController
from gcal_session.state import ClientState, Status

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EventSynchronizer:
    """Lists, creates and deletes events and keeps the local list current.

    Usage:
        sync = EventSynchronizer(controller, data_client, state, settings)
        await sync.list_upcoming()
        await sync.create_event(draft)
        await sync.delete_event(event_id)
    """

    def __init__(
        self,
        controller: SessionController,
        data_client: DataClient,
        state: ClientState,
        settings: Settings,
        open_link: Callable[[str], Any] | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            controller: Session controller; operations run only while signed in.
            data_client: Calendar data client.
            state: Shared client state holding the event list.
            settings: Display and event time zone settings.
            open_link: Called with a created event's web link.
                Defaults to ``webbrowser.open_new_tab``.
        """
        self.controller = controller
        self.data_client = data_client
        self.state = state
        self.settings = settings
        self._open_link = open_link or webbrowser.open_new_tab
        self._background: set[asyncio.Task] = set()

    def _signed_in(self, operation: str) -> bool:
        if not self.controller.signed_in:
            logger.debug(f"{operation} ignored: not signed in")
            return False
        return True

    # =========================================================================
    # List
    # =========================================================================

    async def fetch_upcoming(self) -> list[CalendarEvent]:
        """Fetch up to MAX_RESULTS upcoming events, ordered by start time.

        Raises:
            SyncError: If the list call fails.
        """
        try:
            response = await self.data_client.list_events(
                calendar_id=PRIMARY_CALENDAR,
                timeMin=_now_iso(),
                showDeleted=False,
                singleEvents=True,
                maxResults=MAX_RESULTS,
                orderBy="startTime",
            )
        except Exception as e:
            raise SyncError("list", str(e)) from e

        display_tz = self.settings.display_tz()
        locale = self.settings.display_locale
        try:
            return [
                CalendarEvent.from_api(item, display_tz, locale)
                for item in response.get("items", [])
            ]
        except (KeyError, ValueError) as e:
            raise SyncError("list", f"unexpected response: {e}") from e

    async def list_upcoming(self) -> list[CalendarEvent] | None:
        """Replace the local event list with the upcoming events.

        A result that arrives after the session it was requested under has
        ended is dropped.

        Returns:
            The new list, or None if skipped or failed (the old list is kept).
        """
        if not self._signed_in("list"):
            return None

        generation = self.controller.generation
        with self.state.busy_scope():
            try:
                events = await self.fetch_upcoming()
            except SyncError as e:
                logger.error(f"Error loading events: {e}")
                self.state.status = Status.LIST_ERROR
                return None

            # Session changed (sign-out, possibly followed by a new sign-in) mid-request
            if self.controller.generation != generation:
                logger.debug("Discarding event list fetched under a previous session")
                return None

            self.state.replace_events(events)
            logger.info(f"Loaded {len(events)} upcoming events")
            return events

    # =========================================================================
    # Create
    # =========================================================================

    async def create_event(
        self, draft: EventDraft, today: date | None = None
    ) -> CalendarEvent | None:
        """Create an event from a draft.

        Runs three steps in order: insert, refresh the list, then open the
        new event's link in the background. On failure the draft is kept.

        Returns:
            The created event, or None if skipped or failed.
        """
        if not self._signed_in("create"):
            return None

        try:
            draft.validate(today)
        except ValueError as e:
            logger.warning(f"Rejected event draft: {e}")
            self.state.status = Status.INVALID_DRAFT.format(reason=e)
            return None

        with self.state.busy_scope():
            try:
                created = await self._insert_step(draft)
            except SyncError as e:
                logger.error(f"Error creating event: {e}")
                self.state.status = Status.CREATE_ERROR
                return None

            draft.clear()
            self.state.status = Status.CREATED

            await self._refresh_step()
            self._open_link_step(created)
            return created

    async def _insert_step(self, draft: EventDraft) -> CalendarEvent:
        body = draft.to_payload(self.settings.event_time_zone, self.settings.display_tz())
        try:
            result = await self.data_client.insert_event(body, calendar_id=PRIMARY_CALENDAR)
            created = CalendarEvent.from_api(
                result, self.settings.display_tz(), self.settings.display_locale
            )
        except Exception as e:
            raise SyncError("insert", str(e)) from e

        logger.info(f"Created event {created.id}")
        return created

    async def _refresh_step(self) -> None:
        await self.list_upcoming()

    def _open_link_step(self, event: CalendarEvent) -> None:
        if not event.html_link:
            return
        task = asyncio.ensure_future(self._open_link_later(event.html_link))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _open_link_later(self, url: str) -> None:
        await asyncio.sleep(self.settings.open_link_delay)
        try:
            self._open_link(url)
        except Exception as e:
            logger.warning(f"Could not open {url}: {e}")

    async def wait_background(self) -> None:
        """Wait for pending open-link tasks."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete_event(self, event_id: str) -> bool:
        """Delete an event and refresh the list.

        Returns:
            True if the delete call succeeded.
        """
        if not self._signed_in("delete"):
            return False

        with self.state.busy_scope():
            try:
                await self.data_client.delete_event(event_id, calendar_id=PRIMARY_CALENDAR)
            except Exception as e:
                logger.error(f"Error deleting event {event_id}: {e}")
                self.state.status = Status.DELETE_ERROR
                return False

            logger.info(f"Deleted event {event_id}")
            self.state.status = Status.DELETED
            await self.list_upcoming()
            return True
