"""Centralized client configuration.

Settings come from the environment, optionally seeded from a .env file in
the repository root:
    GOOGLE_CLIENT_ID       - OAuth client identifier (web application)
    GOOGLE_API_KEY         - API key used to load the Calendar discovery document
    GCAL_REDIRECT_URI      - Redirect URI registered for the OAuth client
    GCAL_EVENT_TIME_ZONE   - Time zone tag attached to created events
    GCAL_DISPLAY_LOCALE    - Locale for formatted dates ("es-ES" or "en-US")
    GCAL_DISPLAY_TIME_ZONE - IANA zone for display (unset = local machine zone)
    GCAL_AUTH_PROBE_DELAY  - Seconds to wait before re-probing the auth SDK
    GCAL_OPEN_LINK_DELAY   - Seconds to wait before opening a created event

This module auto-loads the .env file on import. Variables already present in
the environment take precedence.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

# __file__ is src/gcal_session/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = REPO_ROOT / ".env"

DISCOVERY_URL = "https://www.googleapis.com/discovery/v1/apis/calendar/v3/rest"
PRIMARY_CALENDAR = "primary"
MAX_RESULTS = 20

DEFAULT_REDIRECT_URI = "http://localhost"
DEFAULT_EVENT_TIME_ZONE = "America/Lima"
DEFAULT_DISPLAY_LOCALE = "es-ES"
DEFAULT_AUTH_PROBE_DELAY = 0.1
DEFAULT_OPEN_LINK_DELAY = 1.0


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Only set if not already in environment (env vars take precedence)
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from e


@dataclass
class Settings:
    """Runtime settings for the calendar client.

    Missing client id or API key is not an error here; the initializers fail
    downstream when they try to use them.
    """

    client_id: str | None = None
    api_key: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    discovery_url: str = DISCOVERY_URL
    event_time_zone: str = DEFAULT_EVENT_TIME_ZONE
    display_locale: str = DEFAULT_DISPLAY_LOCALE
    display_time_zone: str | None = None
    auth_probe_delay: float = DEFAULT_AUTH_PROBE_DELAY
    open_link_delay: float = DEFAULT_OPEN_LINK_DELAY

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables."""
        return cls(
            client_id=os.environ.get("GOOGLE_CLIENT_ID") or None,
            api_key=os.environ.get("GOOGLE_API_KEY") or None,
            redirect_uri=os.environ.get("GCAL_REDIRECT_URI", DEFAULT_REDIRECT_URI),
            event_time_zone=os.environ.get("GCAL_EVENT_TIME_ZONE", DEFAULT_EVENT_TIME_ZONE),
            display_locale=os.environ.get("GCAL_DISPLAY_LOCALE", DEFAULT_DISPLAY_LOCALE),
            display_time_zone=os.environ.get("GCAL_DISPLAY_TIME_ZONE") or None,
            auth_probe_delay=_float_env("GCAL_AUTH_PROBE_DELAY", DEFAULT_AUTH_PROBE_DELAY),
            open_link_delay=_float_env("GCAL_OPEN_LINK_DELAY", DEFAULT_OPEN_LINK_DELAY),
        )

    def display_tz(self) -> tzinfo | None:
        """Resolve the display time zone (None means the local machine zone)."""
        if self.display_time_zone:
            return ZoneInfo(self.display_time_zone)
        return None


def get_credential_status() -> dict:
    """Get status of the configured credentials.

    Returns:
        Dictionary with credential status.
    """
    return {
        "repo_root": str(REPO_ROOT),
        "env_file": ENV_FILE.exists(),
        "google": {
            "client_id": bool(os.environ.get("GOOGLE_CLIENT_ID")),
            "api_key": bool(os.environ.get("GOOGLE_API_KEY")),
        },
    }


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)
