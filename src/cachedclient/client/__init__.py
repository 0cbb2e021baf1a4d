"""HTTP client module for cachedclient.

Provides :class:`Client`, a thin synchronous wrapper around
:class:`httpx.Client` with a base URL, default headers, JSON bodies, and
optional cookie persistence.

Example::

    from cachedclient.client import Client

    with Client("https://api.example.com", timeout=5) as client:
        resp = client.get("/users")
"""

from cachedclient.client.client import DEFAULT_TIMEOUT_S, Client

__all__ = ["Client", "DEFAULT_TIMEOUT_S"]
