"""Numeric process exit codes for the ``cachedclient`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cachedclient.exceptions.CachedClientError` subclass.
Shell scripts can inspect the exit code to tell a network failure from a
malformed payload without parsing stderr.

Example::

    $ cachedclient get /users
    $ echo $?
    5   # EXIT_FETCH_ERROR -- the request could not be completed
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SCHEDULE_ERROR = 3
"""A schedule expression could not be parsed."""

EXIT_NOT_FOUND = 4
"""No cached endpoint is registered under the requested path."""

EXIT_FETCH_ERROR = 5
"""The request failed (network error, timeout, or unexpected status code)."""

EXIT_DECODE_ERROR = 6
"""The response payload could not be decoded into the registered shape."""

EXIT_EXPIRED = 7
"""The cached value is older than its freshness window."""
