"""Typer application and CLI entry point for cachedclient.

The CLI is a thin shell around the library, useful for checking an
endpoint by hand or watching how a cached value evolves:

- ``cachedclient get PATH`` -- one request via :class:`~cachedclient.client.Client`.
- ``cachedclient watch PATH`` -- a :class:`~cachedclient.cache.CachedClient`
  refreshing PATH in the background.
- ``cachedclient config show`` -- the resolved configuration.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from cachedclient import __version__
from cachedclient.commands.config import config_app
from cachedclient.commands.request import get_command
from cachedclient.commands.watch import watch_command
from cachedclient.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="cachedclient",
    help="HTTP client with self-refreshing cached endpoints.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("get")(get_command)
app.command("watch")(watch_command)
app.add_typer(config_app, name="config", help="Configuration inspection.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"cachedclient {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Any) -> None:
    """Send library log records to stderr through Rich."""
    root = logging.getLogger("cachedclient")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, show_time=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-u", help="Base URL (overrides env and config file)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Request timeout in seconds."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (JSON or YAML)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~cachedclient.output.OutputManager`,
    routes library logging to stderr, and stores the connection options
    in ``ctx.obj`` for the sub-commands.
    """
    from cachedclient.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["timeout"] = timeout
    ctx.obj["config_path"] = config_path


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``cachedclient`` console script.

    :class:`~cachedclient.exceptions.CachedClientError` instances that
    escape a command exit with the error's ``exit_code``; anything else
    prints a generic error and exits with :data:`EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from cachedclient.exceptions import CachedClientError
        from cachedclient.output import error

        if isinstance(exc, CachedClientError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
