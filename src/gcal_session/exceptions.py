"""Calendar client exceptions."""


class CalendarSessionError(Exception):
    """Base exception for calendar client errors."""

    pass


class LoadError(CalendarSessionError):
    """Raised when an SDK cannot be loaded or never exposes its API surface."""

    def __init__(self, sdk_name: str, reason: str):
        self.sdk_name = sdk_name
        super().__init__(f"Failed to load {sdk_name}: {reason}")


class CalendarConnectionError(CalendarSessionError):
    """Raised when the Calendar data client fails to initialize."""

    pass


class AuthError(CalendarSessionError):
    """Raised when a token request is denied or fails."""

    pass


class SyncError(CalendarSessionError):
    """Raised when a list, insert or delete call against the calendar fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Calendar {operation} failed: {message}")
