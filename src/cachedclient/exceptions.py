"""Exception hierarchy for cachedclient.

All exceptions inherit from :class:`CachedClientError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`cachedclient.exit_codes`. The CLI entry point catches
``CachedClientError`` and exits with the matching code; library callers
catch the specific subclasses.

Subclass hierarchy::

    CachedClientError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ScheduleError       (exit 3)
    +-- NotFoundError       (exit 4)
    +-- RefreshError
    |   +-- FetchError      (exit 5)
    |   +-- DecodeError     (exit 6)
    +-- ExpiredError        (exit 7)
    +-- ConfigError         (exit 1)

:class:`ExpiredError` is advisory: it is raised together with the last
known value (available as :attr:`ExpiredError.value`) so the caller can
decide whether stale data is acceptable.
"""

from __future__ import annotations

from typing import Any, Optional

from cachedclient.exit_codes import (
    EXIT_DECODE_ERROR,
    EXIT_EXPIRED,
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SCHEDULE_ERROR,
)


class CachedClientError(Exception):
    """Base exception for all cachedclient errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CachedClientError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ScheduleError(CachedClientError):
    """Raised when a schedule expression cannot be parsed or resolved."""

    exit_code = EXIT_SCHEDULE_ERROR


class NotFoundError(CachedClientError):
    """Raised when no cached endpoint is registered under a path."""

    exit_code = EXIT_NOT_FOUND

    def __init__(self, path: str):
        super().__init__(f"no cache entry for path: {path}")
        self.path = path


class RefreshError(CachedClientError):
    """Base class for failures while refreshing a cached endpoint.

    Args:
        path: The endpoint path being refreshed.
        reason: What went wrong.

    Attributes:
        stage: ``"fetch"`` or ``"decode"``; identifies where the refresh
            failed.
    """

    stage: str = "refresh"

    def __init__(self, path: str, reason: str):
        super().__init__(f"{self.stage} failed for {path}: {reason}")
        self.path = path
        self.reason = reason


class FetchError(RefreshError):
    """Raised on transport failures, timeouts, and unexpected status codes."""

    exit_code = EXIT_FETCH_ERROR
    stage = "fetch"


class DecodeError(RefreshError):
    """Raised when a payload is empty, truncated, or does not match its shape."""

    exit_code = EXIT_DECODE_ERROR
    stage = "decode"


class ExpiredError(CachedClientError):
    """Raised when a cached value is older than its freshness window.

    The stale value is not withheld: it is attached as :attr:`value`
    (``None`` if the entry was never populated).
    """

    exit_code = EXIT_EXPIRED

    def __init__(self, path: str, value: Any = None, updated_at: Optional[float] = None):
        super().__init__(f"cache expired for path: {path}")
        self.path = path
        self.value = value
        self.updated_at = updated_at


class ConfigError(CachedClientError):
    """Raised for configuration problems (unreadable or invalid config files)."""

    exit_code = EXIT_GENERIC_FAILURE
