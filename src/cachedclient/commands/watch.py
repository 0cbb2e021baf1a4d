"""``cachedclient watch`` -- keep an endpoint cached and print each refresh."""

from __future__ import annotations

import time

import typer
from pydantic import ValidationError

from cachedclient.commands.common import (
    exit_on_error,
    resolve_from_context,
    transport_from_context,
)
from cachedclient.exceptions import InvalidUsageError
from cachedclient.output import format_response, info, warning


def watch_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path, appended to the base URL."),
    cron_spec: str = typer.Option(
        "@every 10s", "--cron-spec", "-s", help="Refresh schedule: '@every 30s' or a crontab."
    ),
    expiration: float = typer.Option(
        60.0, "--expiration", "-e", help="Freshness window in seconds."
    ),
    skip_initial_fetch: bool = typer.Option(
        False, "--skip-initial-fetch", help="Wait for the first scheduled refresh."
    ),
    polls: int = typer.Option(5, "--polls", min=1, help="How many times to check the cache."),
    interval: float = typer.Option(
        1.0, "--interval", min=0.0, help="Seconds between cache checks."
    ),
) -> None:
    """Register PATH as a cached endpoint and print every new value.

    The cache is checked POLLS times, INTERVAL seconds apart; a value is
    printed whenever a background refresh has stored a new one.

    Example::

        cachedclient --base-url https://api.example.com watch /status -s "@every 2s"
    """
    from cachedclient.cache import CachedClient
    from cachedclient.models import CacheConfig

    with exit_on_error():
        config = resolve_from_context(ctx)
        try:
            endpoint = CacheConfig(
                path=path,
                cron_spec=cron_spec,
                expiration=expiration,
                skip_initial_fetch=skip_initial_fetch,
            )
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid endpoint options: {exc}") from exc

        client = CachedClient.from_config(
            config.model_copy(update={"endpoints": []}),
            transport=transport_from_context(ctx),
        )
        with client:
            client.setup_cached_endpoint(endpoint)
            info(f"Watching {path} ({cron_spec})")

            last_update = None
            for poll in range(polls):
                if poll:
                    time.sleep(interval)
                entry = client.get_entry(path)
                if entry.populated and client.cache_summary()[path]["expired"]:
                    warning(f"Cached value for {path} is stale")
                if not entry.populated or entry.updated_at == last_update:
                    continue
                last_update = entry.updated_at
                format_response(entry.value)
