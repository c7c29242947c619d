"""Calendar client facade for presentation layers.

Wires the SDK loader, both initializers, the session controller and the
event synchronizer from one ``Settings`` object, and exposes the actions
and state snapshot a front end needs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from gcal_session.auth_client import AuthClient, ConsentPrompt
from gcal_session.config import Settings
from gcal_session.data_client import DataClient
from gcal_session.loader import AUTH_SDK, SdkLoader
from gcal_session.models import CalendarEvent, EventDraft
from gcal_session.session import SessionController
from gcal_session.state import ClientState, Snapshot
from gcal_session.sync import EventSynchronizer

logger = logging.getLogger(__name__)


class CalendarApp:
    """Primary calendar client: session plus event list.

    Usage:
        app = CalendarApp(Settings.from_env())
        await app.start()
        await app.sign_in()
        await app.create_event(EventDraft(title="Team sync", date=date.today()))
        print(app.snapshot().events)
        await app.aclose()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        loader: SdkLoader | None = None,
        consent: ConsentPrompt | None = None,
        open_link: Callable[[str], Any] | None = None,
        data_client: DataClient | None = None,
        auth_client: AuthClient | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.loader = loader or SdkLoader()
        self.state = ClientState()
        self.data_client = data_client or DataClient(self.loader)
        self.auth_client = auth_client or AuthClient(
            self.loader,
            consent=consent,
            redirect_uri=self.settings.redirect_uri,
            sdk=AUTH_SDK.with_probe_delay(self.settings.auth_probe_delay),
        )
        self.session = SessionController(
            self.data_client, self.auth_client, self.state, self.settings
        )
        self.sync = EventSynchronizer(
            self.session, self.data_client, self.state, self.settings, open_link=open_link
        )
        self.session.add_sign_in_listener(self.sync.list_upcoming)

    async def start(self) -> None:
        """Initialize both SDK clients."""
        await self.session.start()

    def snapshot(self) -> Snapshot:
        """Current status, signed-in flag, busy flag and event list."""
        return self.state.snapshot(self.session.signed_in)

    async def sign_in(self) -> None:
        """Request a token and wait until the attempt (and first refresh) completes."""
        task = self.session.sign_in()
        if task is not None:
            await task

    async def sign_out(self) -> None:
        self.session.sign_out()

    async def list_upcoming(self) -> list[CalendarEvent] | None:
        return await self.sync.list_upcoming()

    async def create_event(
        self, draft: EventDraft, today: date | None = None
    ) -> CalendarEvent | None:
        return await self.sync.create_event(draft, today)

    async def delete_event(self, event_id: str) -> bool:
        return await self.sync.delete_event(event_id)

    async def aclose(self) -> None:
        """Let background work (revoke, link opening) finish and close clients."""
        await asyncio.gather(self.session.wait_background(), self.sync.wait_background())
        if self.auth_client.ready:
            await self.auth_client.aclose()
