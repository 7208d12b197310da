"""Error types raised by the dashboard core and proxy layer."""


class RosterWatchError(Exception):
    """Base class for all roster-watch errors."""


class NetworkError(RosterWatchError):
    """Non-2xx response or transport failure."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class NetworkTimeout(NetworkError):
    """No response arrived within the attempt timeout."""


class ParseError(RosterWatchError):
    """Malformed CSV or JSON payload."""


class ConfigError(RosterWatchError):
    """Required endpoint configuration is missing. Never retried."""
