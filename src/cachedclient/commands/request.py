"""``cachedclient get`` -- send one GET request and print the response."""

from __future__ import annotations

from typing import Optional

import typer

from cachedclient.commands.common import (
    exit_on_error,
    parse_headers,
    resolve_from_context,
    transport_from_context,
)
from cachedclient.exceptions import FetchError
from cachedclient.output import debug, format_response


def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path, appended to the base URL."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra request header, 'Name: value'. Repeatable."
    ),
) -> None:
    """Send a GET request and print the response body.

    Non-2xx responses exit with the fetch-error code.

    Example::

        cachedclient --base-url https://api.example.com get /users
    """
    from cachedclient.client import Client

    with exit_on_error():
        config = resolve_from_context(ctx)
        headers = parse_headers(header)
        with Client.from_config(config, transport=transport_from_context(ctx)) as client:
            debug(f"GET {config.base_url}{path}")
            response = client.get(path, headers=headers)

        if not response.is_success:
            raise FetchError(path, f"unexpected status code: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = response.text
        format_response(data)
