"""Calendar event and draft models."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any

from gcal_session.formatting import format_date, format_time_range, to_display_zone

DEFAULT_START_TIME = "10:00"
DEFAULT_END_TIME = "11:00"


def _parse_instant(value: str) -> datetime | None:
    with contextlib.suppress(ValueError):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return None


def _to_api_instant(dt: datetime) -> str:
    """Serialize an aware datetime as a UTC ISO-8601 string with millisecond precision."""
    utc = dt.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class EventTime:
    """A start or end of an event: an instant paired with a time zone."""

    date_time: str
    time_zone: str | None = None
    all_day: bool = False

    @classmethod
    def from_api(cls, data: dict) -> EventTime:
        if "dateTime" in data:
            return cls(date_time=data["dateTime"], time_zone=data.get("timeZone"))
        return cls(date_time=data.get("date", ""), time_zone=data.get("timeZone"), all_day=True)

    def instant(self, tz: tzinfo | None = None) -> datetime | None:
        """Parse into a datetime.

        All-day values have no instant; they are read as midnight in ``tz``.
        """
        if not self.date_time:
            return None
        if self.all_day:
            with contextlib.suppress(ValueError):
                day = date.fromisoformat(self.date_time)
                return to_display_zone(datetime.combine(day, time()), tz)
            return None
        return _parse_instant(self.date_time)


@dataclass
class CalendarEvent:
    """Represents an event on the user's primary calendar.

    ``formatted_date`` and ``formatted_time`` are display-only and are
    recomputed from ``start``/``end`` on every refresh.
    """

    id: str
    summary: str
    start: EventTime
    end: EventTime
    description: str | None = None
    html_link: str | None = None
    formatted_date: str = ""
    formatted_time: str = ""

    @classmethod
    def from_api(
        cls,
        data: dict,
        display_tz: tzinfo | None = None,
        locale: str = "es-ES",
    ) -> CalendarEvent:
        """Parse an event from a Calendar API response item."""
        start = EventTime.from_api(data.get("start", {}))
        end = EventTime.from_api(data.get("end", {}))

        formatted_date = ""
        formatted_time = ""
        start_dt = start.instant(display_tz)
        end_dt = end.instant(display_tz)
        if start_dt is not None:
            formatted_date = format_date(start_dt, display_tz, locale)
            if end_dt is not None:
                formatted_time = format_time_range(start_dt, end_dt, display_tz, locale)

        return cls(
            id=data["id"],
            summary=data.get("summary", ""),
            start=start,
            end=end,
            description=data.get("description"),
            html_link=data.get("htmlLink"),
            formatted_date=formatted_date,
            formatted_time=formatted_time,
        )


def _parse_clock(value: str, label: str) -> time:
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a time in HH:MM format, got {value!r}") from None


@dataclass
class EventDraft:
    """Mutable form state used to build a new event.

    End time is deliberately not checked against start time; the calendar
    service decides whether to accept it.
    """

    title: str = ""
    description: str = ""
    date: date | None = None
    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME

    def validate(self, today: date | None = None) -> None:
        """Check required fields.

        Args:
            today: The client's local date. Defaults to ``date.today()``.

        Raises:
            ValueError: If a required field is missing or the date is in the past.
        """
        if not self.title.strip():
            raise ValueError("Event title is required")
        if self.date is None:
            raise ValueError("Event date is required")
        today = today or date.today()
        if self.date < today:
            raise ValueError(f"Event date {self.date.isoformat()} is in the past")
        _parse_clock(self.start_time, "Start time")
        _parse_clock(self.end_time, "End time")

    def to_payload(self, time_zone: str, local_tz: tzinfo | None = None) -> dict[str, Any]:
        """Build the insert request body.

        Date and times are read as wall-clock values in the viewer's zone
        (``local_tz``, or the machine zone if None), sent as UTC instants, and
        tagged with the fixed ``time_zone`` identifier.
        """
        if self.date is None:
            raise ValueError("Event date is required")
        start = to_display_zone(
            datetime.combine(self.date, _parse_clock(self.start_time, "Start time")), local_tz
        )
        end = to_display_zone(
            datetime.combine(self.date, _parse_clock(self.end_time, "End time")), local_tz
        )

        body: dict[str, Any] = {
            "summary": self.title,
            "description": self.description,
            "start": {"dateTime": _to_api_instant(start), "timeZone": time_zone},
            "end": {"dateTime": _to_api_instant(end), "timeZone": time_zone},
        }
        return body

    def clear(self) -> None:
        """Reset the draft to an empty form."""
        self.title = ""
        self.description = ""
        self.date = None
        self.start_time = DEFAULT_START_TIME
        self.end_time = DEFAULT_END_TIME
