# race_relay/core/exceptions.py
"""
Custom, application-specific exceptions for the race relay service.

Every recoverable failure in the relay loop maps onto one of these classes so
the engine can decide per class whether to skip a pair, continue a batch or
start from empty state. Only ConfigError is fatal, and only at startup.
"""


class RelayException(Exception):
    """Base class for all custom exceptions in this application."""

    pass


class ConfigError(RelayException):
    """Raised when the relay configuration is missing or invalid."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        final_message = f"{message} ({path})" if path else message
        super().__init__(final_message)


class FetchError(RelayException):
    """Base class for errors raised while fetching an event's races."""

    def __init__(self, event_key: str, message: str):
        self.event_key = event_key
        super().__init__(f"[{event_key}] {message}")


class TransientFetchError(FetchError):
    """Raised for network or remote failures. The pair is retried next cycle."""

    def __init__(
        self,
        event_key: str,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(event_key, message)


class FetchAuthError(TransientFetchError):
    """Raised specifically for HTTP 401/403 errors from the scheduling service."""

    pass


class EventNotFoundError(FetchError):
    """Raised when the series or event does not exist remotely, or the
    response could not be read as a race list."""

    pass


class TransientSubmitError(RelayException):
    """Raised when a single form submission could not be delivered."""

    def __init__(
        self,
        race_id: str,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        self.race_id = race_id
        self.url = url
        self.status_code = status_code
        super().__init__(f"[race {race_id}] {message}")


class StateError(RelayException):
    """Base class for tracking state persistence errors."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{message} ({path})")


class StateLoadError(StateError):
    """Raised when the persisted state cannot be read or parsed."""

    pass


class StateSaveError(StateError):
    """Raised when the persisted state cannot be written."""

    pass
