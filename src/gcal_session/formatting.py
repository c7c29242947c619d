"""Locale-fixed display formatting for event dates and times.

Display strings are derived from the stored instants every time the event
list is refreshed. They are converted into the viewer's zone for display
only; the stored start/end keep their own offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo


@dataclass(frozen=True)
class LocaleFormat:
    """Names and patterns for one display locale."""

    weekdays: tuple[str, ...]
    months: tuple[str, ...]
    date_pattern: str
    time_pattern: str


LOCALES = {
    "es-ES": LocaleFormat(
        weekdays=("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"),
        months=(
            "enero",
            "febrero",
            "marzo",
            "abril",
            "mayo",
            "junio",
            "julio",
            "agosto",
            "septiembre",
            "octubre",
            "noviembre",
            "diciembre",
        ),
        date_pattern="{weekday}, {day} de {month} de {year}",
        time_pattern="%H:%M",
    ),
    "en-US": LocaleFormat(
        weekdays=("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
        months=(
            "January",
            "February",
            "March",
            "April",
            "May",
            "June",
            "July",
            "August",
            "September",
            "October",
            "November",
            "December",
        ),
        date_pattern="{weekday}, {month} {day}, {year}",
        time_pattern="%I:%M %p",
    ),
}


def get_locale(name: str) -> LocaleFormat:
    """Look up a display locale by name.

    Raises:
        ValueError: If the locale is not supported.
    """
    try:
        return LOCALES[name]
    except KeyError:
        raise ValueError(
            f"Unsupported display locale: {name}. Use one of: {list(LOCALES.keys())}"
        ) from None


def to_display_zone(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert an instant into the display zone (local machine zone if tz is None).

    Naive datetimes are taken to already be in the display zone.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz) if tz is not None else dt.astimezone()
    return dt.astimezone(tz)


def format_date(dt: datetime, tz: tzinfo | None = None, locale: str = "es-ES") -> str:
    """Format the long human date, e.g. "lunes, 19 de octubre de 2026"."""
    fmt = get_locale(locale)
    local = to_display_zone(dt, tz)
    return fmt.date_pattern.format(
        weekday=fmt.weekdays[local.weekday()],
        day=local.day,
        month=fmt.months[local.month - 1],
        year=local.year,
    )


def format_time(dt: datetime, tz: tzinfo | None = None, locale: str = "es-ES") -> str:
    """Format a two-digit hour and minute, e.g. "09:30"."""
    return to_display_zone(dt, tz).strftime(get_locale(locale).time_pattern)


def format_time_range(
    start: datetime,
    end: datetime,
    tz: tzinfo | None = None,
    locale: str = "es-ES",
) -> str:
    """Format a start/end pair as "HH:MM - HH:MM"."""
    return f"{format_time(start, tz, locale)} - {format_time(end, tz, locale)}"
