"""Helpers shared by the CLI commands."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import typer

from cachedclient.exceptions import CachedClientError, InvalidUsageError
from cachedclient.models import ClientConfig
from cachedclient.output import error


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn a :class:`CachedClientError` into an error message and exit code."""
    try:
        yield
    except CachedClientError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def resolve_from_context(ctx: typer.Context) -> ClientConfig:
    """Resolve the client config from the root callback's options."""
    from cachedclient.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        cli_base_url=obj.get("base_url"),
        cli_timeout=obj.get("timeout"),
        config_path=obj.get("config_path"),
    )


def transport_from_context(ctx: typer.Context) -> Optional[Any]:
    """An httpx transport injected through ``ctx.obj`` (tests), if any."""
    return (ctx.obj or {}).get("transport")


def parse_headers(values: Optional[list[str]]) -> dict[str, str]:
    """Parse ``Name: value`` strings from ``--header`` options.

    Raises:
        InvalidUsageError: If an item has no ``:`` separator or an empty name.
    """
    headers: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {item!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers
