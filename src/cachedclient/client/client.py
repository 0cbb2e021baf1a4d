"""Thin synchronous HTTP client.

:class:`Client` wraps :class:`httpx.Client` with a base URL, default
headers, and JSON request bodies. It is deliberately a pass-through: it
does not retry and does not map status codes to exceptions. Only
transport-level failures (connection errors, timeouts, protocol errors)
and unusable URLs are converted, into :class:`~cachedclient.exceptions.FetchError`.

:class:`~cachedclient.cache.CachedClient` builds on this class and uses
:meth:`Client.get` as its fetcher.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Union

import httpx

from cachedclient.exceptions import FetchError
from cachedclient.models import ClientConfig

DEFAULT_TIMEOUT_S = 30.0

_DEFAULT_HEADERS = {"Content-Type": "application/json"}

TimeoutTypes = Union[float, httpx.Timeout, None]


class Client:
    """HTTP client bound to a base URL.

    Args:
        base_url: Prefix for every request path.
        timeout: Default timeout in seconds for every request.
        headers: Extra default headers, merged over
            ``Content-Type: application/json``.
        use_cookies: Keep cookies set by responses across requests. When
            ``False`` the cookie jar is cleared after every response.
        transport: Optional :mod:`httpx` transport (tests pass an
            :class:`httpx.MockTransport`).

    Example::

        with Client("https://api.example.com") as client:
            response = client.get("/users")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        headers: Optional[dict[str, str]] = None,
        use_cookies: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._headers: dict[str, str] = {**_DEFAULT_HEADERS, **(headers or {})}
        self._use_cookies = use_cookies
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "Client":
        """Build a client from a :class:`~cachedclient.models.ClientConfig`."""
        return cls(
            config.base_url,
            timeout=config.request.timeout,
            headers=config.request.headers,
            use_cookies=config.request.use_cookies,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def headers(self) -> dict[str, str]:
        """A copy of the default headers."""
        return dict(self._headers)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        timeout: TimeoutTypes = None,
    ) -> httpx.Response:
        """Send a request and return the raw response.

        Args:
            method: HTTP method.
            path: URL path appended to the base URL.
            body: JSON-serialisable request body, or ``None``.
            headers: Per-request headers; override the defaults.
            timeout: Per-request timeout in seconds. ``None`` uses the
                client default.

        Returns:
            The :class:`httpx.Response`, whatever its status code.

        Raises:
            FetchError: If the body cannot be encoded, the URL is invalid,
                the client is closed, or the request fails at the transport
                level (including timeouts).
        """
        content: Optional[bytes] = None
        if body is not None:
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise FetchError(path, f"cannot encode request body: {exc}") from exc

        if self._client.is_closed:
            raise FetchError(path, "client has been closed")

        merged_headers = {**self._headers, **(headers or {})}
        kwargs: dict[str, Any] = {"headers": merged_headers, "content": content}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise FetchError(path, f"request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(path, f"request failed: {exc}") from exc
        except (httpx.InvalidURL, httpx.CookieConflict) as exc:
            raise FetchError(path, f"invalid request: {exc}") from exc
        finally:
            if not self._use_cookies:
                self._client.cookies.clear()

        return response

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request. Keyword arguments go to :meth:`request`."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, body: Any = None, **kwargs: Any) -> httpx.Response:
        """Send a POST request with an optional JSON body."""
        return self.request("POST", path, body=body, **kwargs)

    def put(self, path: str, body: Any = None, **kwargs: Any) -> httpx.Response:
        """Send a PUT request with an optional JSON body."""
        return self.request("PUT", path, body=body, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a DELETE request."""
        return self.request("DELETE", path, **kwargs)
