"""Observable client state shared by the session and the synchronizer."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass, field

from gcal_session.models import CalendarEvent


class Status:
    """Human-readable status messages shown to the user."""

    INITIALIZING = "Initializing..."
    CONNECTING = "Connecting to Google Calendar..."
    CONNECTED = "Calendar connected"
    CONNECTION_ERROR = "Connection error"
    CONFIGURING_AUTH = "Configuring authorization..."
    AUTH_READY = "Authorization ready"
    AUTH_CONFIG_ERROR = "Authorization configuration error"
    LOAD_ERROR = "Error loading services"
    READY = "All set. Sign in to get started"
    SIGNING_IN = "Signing in..."
    SIGNED_IN = "Signed in"
    AUTH_ERROR = "Authorization error"
    SIGNED_OUT = "Signed out"
    LIST_ERROR = "Error loading events"
    CREATED = "Event created"
    CREATE_ERROR = "Error creating event"
    INVALID_DRAFT = "Invalid event: {reason}"
    DELETED = "Event deleted"
    DELETE_ERROR = "Error deleting event"


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the client state for the presentation layer."""

    status: str
    signed_in: bool
    busy: bool
    events: tuple[CalendarEvent, ...]


@dataclass
class ClientState:
    """Status message, busy tracking and the local event list.

    Each operation holds its own share of the busy counter, so overlapping
    operations do not clear each other's busy flag.
    """

    status: str = Status.INITIALIZING
    events: list[CalendarEvent] = field(default_factory=list)
    _busy: int = field(default=0, init=False, repr=False)

    @property
    def busy(self) -> bool:
        return self._busy > 0

    @contextlib.contextmanager
    def busy_scope(self) -> Iterator[None]:
        """Mark the state busy for the duration of the block."""
        self._busy += 1
        try:
            yield
        finally:
            self._busy -= 1

    def replace_events(self, events: list[CalendarEvent]) -> None:
        self.events = list(events)

    def clear_events(self) -> None:
        self.events = []

    def snapshot(self, signed_in: bool) -> Snapshot:
        return Snapshot(
            status=self.status,
            signed_in=signed_in,
            busy=self.busy,
            events=tuple(self.events),
        )
