"""Shared test fixtures for cachedclient.

Provides a fake API backed by :class:`httpx.MockTransport`, a controllable
clock for freshness tests, a factory for :class:`CachedClient` instances
that are always stopped after the test, and isolation of global output
and logging state.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from cachedclient.cache import CachedClient
from cachedclient.output import reset_output

BASE_URL = "https://api.example.com"

Responder = Callable[[int, httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Reset the global OutputManager and the CLI's log handlers.

    The CLI binds Rich consoles to the streams that CliRunner swaps in;
    once the test ends those streams are closed.
    """
    yield
    reset_output()
    logger = logging.getLogger("cachedclient")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


def counter_payload(n: int, request: httpx.Request) -> httpx.Response:
    """Default responder: JSON with the 1-based call number."""
    return httpx.Response(200, json={"value": "test", "count": n})


class FakeAPI:
    """Counts requests and answers them through a responder function.

    Args:
        responder: Called with the 1-based call number and the request.
        delay: Seconds to sleep before answering (simulates a slow backend).
    """

    def __init__(self, responder: Optional[Responder] = None, delay: float = 0.0) -> None:
        self.responder = responder or counter_payload
        self.delay = delay
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        with self._lock:
            return len(self.requests)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            n = len(self.requests)
        if self.delay:
            time.sleep(self.delay)
        return self.responder(n, request)


class FakeClock:
    """Manually advanced replacement for :func:`time.monotonic`."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def wait_until(condition: Callable[[], bool], timeout: float = 2.0, step: float = 0.01) -> bool:
    """Poll *condition* until it is true or *timeout* seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(step)
    return condition()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client() -> Callable[..., CachedClient]:
    """Factory for CachedClient instances bound to a FakeAPI.

    Every client created is stopped and closed after the test.
    """
    created: list[CachedClient] = []

    def _make(api: FakeAPI, **kwargs: Any) -> CachedClient:
        client = CachedClient(BASE_URL, transport=api.transport, **kwargs)
        created.append(client)
        return client

    yield _make
    for client in created:
        client.stop()
        client.close()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration lookup to *tmp_path*.

    Points XDG_CONFIG_HOME into tmp_path, clears all CACHEDCLIENT_*
    variables, and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("cachedclient.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ["CACHEDCLIENT_CONFIG", "CACHEDCLIENT_BASE_URL", "CACHEDCLIENT_TIMEOUT"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
