"""``cachedclient config`` -- inspect the resolved configuration."""

from __future__ import annotations

import typer

from cachedclient.commands.common import exit_on_error, resolve_from_context
from cachedclient.output import format_response, info

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration after applying flags, env, and files.

    Example::

        cachedclient config show --json
    """
    from cachedclient.config import find_config_file

    with exit_on_error():
        obj = ctx.obj or {}
        path = obj.get("config_path") or find_config_file()
        config = resolve_from_context(ctx)
        info(f"Config file: {path if path is not None else '(none)'}")
        format_response(config.model_dump(mode="json"))
