"""Tests for cachedclient.config: XDG paths, file loading, precedence."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest

from cachedclient.config import (
    find_config_file,
    get_config_dir,
    load_config_file,
    resolve_config,
)
from cachedclient.exceptions import ConfigError
from cachedclient.models import ClientConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cachedclient.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "cachedclient"
        assert not result.exists()

    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cachedclient.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "cachedclient"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cachedclient.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".cachedclient"


# ---------------------------------------------------------------------------
# File discovery and loading
# ---------------------------------------------------------------------------


class TestFindConfigFile:
    def test_none_when_nothing_exists(self, isolated_config: Path) -> None:
        assert find_config_file() is None

    def test_user_file(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "cachedclient" / "config.json"
        _write_json(path, {})
        assert find_config_file() == path

    def test_project_file_beats_user_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "cachedclient" / "config.json", {})
        project = isolated_config / "cachedclient.yaml"
        project.write_text("base_url: https://project.example.com\n")
        assert find_config_file() == project

    def test_env_var_beats_everything(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "cachedclient.json", {})
        explicit = isolated_config / "elsewhere.json"
        _write_json(explicit, {})
        monkeypatch.setenv("CACHEDCLIENT_CONFIG", str(explicit))
        assert find_config_file() == explicit

    def test_env_var_missing_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CACHEDCLIENT_CONFIG", str(isolated_config / "nope.json"))
        with pytest.raises(ConfigError, match="Config file not found"):
            find_config_file()


class TestLoadConfigFile:
    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        _write_json(
            path,
            {
                "base_url": "https://api.example.com",
                "request": {"timeout": 5, "headers": {"X-Api-Key": "k"}},
                "endpoints": [
                    {"path": "/status", "cron_spec": "@every 10s", "expiration": 30},
                ],
            },
        )
        config = load_config_file(path)

        assert config.base_url == "https://api.example.com"
        assert config.request.timeout == 5
        assert config.endpoints[0].expiration == timedelta(seconds=30)
        assert config.endpoints[0].skip_initial_fetch is False

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yml"
        path.write_text(
            "base_url: https://api.example.com\n"
            "timezone: UTC\n"
            "endpoints:\n"
            "  - path: /users\n"
            "    cron_spec: '*/5 * * * *'\n"
            "    expiration: PT10M\n"
            "    skip_initial_fetch: true\n"
        )
        config = load_config_file(path)

        assert config.timezone == "UTC"
        assert config.endpoints[0].expiration == timedelta(minutes=10)
        assert config.endpoints[0].skip_initial_fetch is True

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("")
        assert load_config_file(path) == ClientConfig()

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config_file(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("base_url: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config_file(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        _write_json(path, [1, 2])
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_config_file(path)

    def test_validation_error(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        _write_json(path, {"endpoints": [{"path": "/x"}]})
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config_file(path)

    def test_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config_file(tmp_path / "missing.json")


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.base_url == ""
        assert config.request.timeout == 30.0
        assert config.endpoints == []

    def test_file_values(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "cachedclient.json",
            {"base_url": "https://file.example.com", "request": {"timeout": 12}},
        )
        config = resolve_config()
        assert config.base_url == "https://file.example.com"
        assert config.request.timeout == 12

    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(
            isolated_config / "cachedclient.json",
            {"base_url": "https://file.example.com", "request": {"timeout": 12}},
        )
        monkeypatch.setenv("CACHEDCLIENT_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("CACHEDCLIENT_TIMEOUT", "3.5")

        config = resolve_config()
        assert config.base_url == "https://env.example.com"
        assert config.request.timeout == 3.5

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CACHEDCLIENT_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("CACHEDCLIENT_TIMEOUT", "3.5")

        config = resolve_config(cli_base_url="https://cli.example.com", cli_timeout=9)
        assert config.base_url == "https://cli.example.com"
        assert config.request.timeout == 9

    def test_explicit_path_skips_discovery(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "cachedclient.json", {"base_url": "https://found"})
        explicit = isolated_config / "other.json"
        _write_json(explicit, {"base_url": "https://explicit"})

        assert resolve_config(config_path=explicit).base_url == "https://explicit"

    def test_bad_env_timeout(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHEDCLIENT_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="CACHEDCLIENT_TIMEOUT"):
            resolve_config()

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_non_positive_timeout(self, isolated_config: Path, timeout: float) -> None:
        with pytest.raises(ConfigError, match="must be positive"):
            resolve_config(cli_timeout=timeout)
