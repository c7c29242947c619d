"""Google Calendar session client.

View, create and delete events on the signed-in user's primary calendar.

Usage:
    import asyncio
    from datetime import date

    from gcal_session import CalendarApp, EventDraft

    async def main():
        app = CalendarApp()
        await app.start()
        await app.sign_in()
        await app.create_event(
            EventDraft(title="Team sync", date=date.today(), start_time="09:00", end_time="09:30")
        )
        for event in app.snapshot().events:
            print(event.formatted_date, event.formatted_time, event.summary)
        await app.sign_out()
        await app.aclose()

    asyncio.run(main())

Setup:
    1. Create a web OAuth client and an API key in Google Cloud Console
    2. Put GOOGLE_CLIENT_ID and GOOGLE_API_KEY in .env (see: gcal-session init)
"""

from __future__ import annotations

from gcal_session.app import CalendarApp
from gcal_session.config import Settings
from gcal_session.exceptions import (
    AuthError,
    CalendarConnectionError,
    CalendarSessionError,
    LoadError,
    SyncError,
)
from gcal_session.models import CalendarEvent, EventDraft, EventTime
from gcal_session.state import Snapshot, Status

__all__ = [
    "CalendarApp",
    "Settings",
    "CalendarEvent",
    "EventDraft",
    "EventTime",
    "Snapshot",
    "Status",
    "CalendarSessionError",
    "LoadError",
    "CalendarConnectionError",
    "AuthError",
    "SyncError",
]
