"""Configuration discovery, loading, and precedence resolution.

A :class:`~cachedclient.models.ClientConfig` can come from several places.
:func:`resolve_config` merges them, highest precedence first:

1. Explicit arguments (CLI flags).
2. Environment variables (``CACHEDCLIENT_BASE_URL``,
   ``CACHEDCLIENT_TIMEOUT``).
3. The config file: ``$CACHEDCLIENT_CONFIG`` if set, otherwise a
   project-local ``./cachedclient.json`` / ``.yaml`` / ``.yml``, otherwise
   the user file under the XDG config directory.
4. Model defaults.

Config files may be JSON or YAML; the format is chosen by extension.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from cachedclient.exceptions import ConfigError
from cachedclient.models import ClientConfig

_APP_NAME = "cachedclient"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_NAMES = ("cachedclient.json", "cachedclient.yaml", "cachedclient.yml")

ENV_CONFIG = "CACHEDCLIENT_CONFIG"
ENV_BASE_URL = "CACHEDCLIENT_BASE_URL"
ENV_TIMEOUT = "CACHEDCLIENT_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the user configuration directory (not created).

    On Linux/BSD: ``$XDG_CONFIG_HOME/cachedclient/`` (default
    ``~/.config/cachedclient/``). Elsewhere: ``~/.cachedclient/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


# --- File loading ---


def find_config_file() -> Optional[Path]:
    """Locate the config file to use, or ``None`` if there is none.

    Raises:
        ConfigError: If ``$CACHEDCLIENT_CONFIG`` names a missing file.
    """
    explicit = os.environ.get(ENV_CONFIG)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path} (from {ENV_CONFIG})")
        return path

    for name in _PROJECT_CONFIG_NAMES:
        path = Path.cwd() / name
        if path.is_file():
            return path

    path = get_config_dir() / _CONFIG_FILENAME
    if path.is_file():
        return path
    return None


def _parse_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def load_config_file(path: Path) -> ClientConfig:
    """Load and validate a config file.

    Args:
        path: A ``.json``, ``.yaml`` or ``.yml`` file.

    Returns:
        The validated :class:`~cachedclient.models.ClientConfig`. An empty
        file yields the defaults.

    Raises:
        ConfigError: If the file cannot be read, parsed, or validated.
    """
    try:
        data = _parse_file(path)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if data is None:
        return ClientConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file {path}: expected a mapping at top level")
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    config_path: Optional[Path] = None,
) -> ClientConfig:
    """Resolve the effective client configuration.

    Args:
        cli_base_url: Base URL from the command line (highest precedence).
        cli_timeout: Request timeout in seconds from the command line.
        config_path: Explicit config file; skips file discovery.

    Returns:
        The merged :class:`~cachedclient.models.ClientConfig`.

    Raises:
        ConfigError: On an unreadable or invalid config file, or a
            non-numeric ``CACHEDCLIENT_TIMEOUT``.
    """
    path = config_path if config_path is not None else find_config_file()
    config = load_config_file(path) if path is not None else ClientConfig()

    env_base_url = os.environ.get(ENV_BASE_URL)
    if cli_base_url is not None:
        config.base_url = cli_base_url
    elif env_base_url:
        config.base_url = env_base_url

    env_timeout = os.environ.get(ENV_TIMEOUT)
    if cli_timeout is not None:
        config.request.timeout = cli_timeout
    elif env_timeout:
        try:
            config.request.timeout = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be a number of seconds, got {env_timeout!r}"
            ) from exc
    if config.request.timeout <= 0:
        raise ConfigError("Request timeout must be positive")

    return config
