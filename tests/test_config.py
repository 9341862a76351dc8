"""Tests for srccli.config -- XDG paths, atomic writes, config file, precedence."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from srccli.config import (
    HIDDEN_VALUE,
    atomic_write,
    build_client_config,
    config_path,
    get_config_dir,
    get_data_dir,
    get_value,
    load_config,
    load_raw_config,
    resolve_base_url,
    resolve_organization,
    save_config,
    set_value,
)
from srccli.exceptions import ConfigError, TokenNotFoundError
from srccli.models import DEFAULT_BASE_URL, AppConfig


def _write_yaml(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("srccli.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        result = get_config_dir()
        assert result == tmp_path / "cfg" / "src"
        assert result.is_dir()

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("srccli.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "src"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("srccli.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_data_dir() == tmp_path / ".local" / "share" / "src"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("srccli.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".src"
        assert get_data_dir() == tmp_path / ".src" / "data"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "file.txt"
        atomic_write(target, "hello")
        assert target.read_text(encoding="utf-8") == "hello"

    def test_applies_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "secret"
        atomic_write(target, "s", mode=0o600)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_failure_leaves_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("old")
        with patch("srccli.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write(target, "new")
        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]


# ---------------------------------------------------------------------------
# Config file location and loading
# ---------------------------------------------------------------------------


class TestConfigPath:
    def test_explicit_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SRC_CONFIG", str(isolated_config / "env.yaml"))
        assert config_path(str(isolated_config / "flag.yaml")) == isolated_config / "flag.yaml"

    def test_env_var(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SRC_CONFIG", str(isolated_config / "env.yaml"))
        assert config_path() == isolated_config / "env.yaml"

    def test_project_file(self, isolated_config: Path) -> None:
        (isolated_config / ".src.yaml").write_text("organization: proj\n")
        assert config_path() == isolated_config / ".src.yaml"

    def test_default(self, isolated_config: Path) -> None:
        assert config_path() == isolated_config / "config" / "src" / "config.yaml"


class TestLoadConfig:
    def test_missing_file_is_empty(self, isolated_config: Path) -> None:
        assert load_raw_config() == {}
        assert load_config() == AppConfig()

    def test_loads_values(self, isolated_config: Path) -> None:
        _write_yaml(config_path(), {"organization": "acme", "custom": {"x": 1}})
        config = load_config()
        assert config.organization == "acme"

    def test_invalid_yaml(self, isolated_config: Path) -> None:
        path = config_path()
        path.write_text("organization: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config()

    def test_non_mapping(self, isolated_config: Path) -> None:
        config_path().write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_raw_config()

    def test_save_omits_unset(self, isolated_config: Path) -> None:
        save_config(AppConfig(organization="acme"))
        assert yaml.safe_load(config_path().read_text()) == {"organization": "acme"}


# ---------------------------------------------------------------------------
# get / set
# ---------------------------------------------------------------------------


class TestGetSetValue:
    def test_get_missing_is_none(self, isolated_config: Path) -> None:
        assert get_value("organization") is None

    def test_get_token_is_hidden(self, isolated_config: Path) -> None:
        _write_yaml(config_path(), {"token": "secret"})
        assert get_value("token") == HIDDEN_VALUE

    def test_set_and_get_nested(self, isolated_config: Path) -> None:
        set_value("defaults.repo", "acme/tool")
        assert get_value("defaults.repo") == "acme/tool"
        assert get_value("defaults") == {"repo": "acme/tool"}

    def test_set_keeps_other_keys(self, isolated_config: Path) -> None:
        _write_yaml(config_path(), {"organization": "acme", "extra": "keep"})
        set_value("base_url", "https://api.local")
        data = load_raw_config()
        assert data == {"organization": "acme", "extra": "keep", "base_url": "https://api.local"}

    def test_set_coerces_existing_bool_and_int(self, isolated_config: Path) -> None:
        _write_yaml(config_path(), {"flags": {"on": False, "n": 1}})
        assert set_value("flags.on", "yes") is True
        assert set_value("flags.n", "5") == 5
        with pytest.raises(ConfigError, match="Expected integer"):
            set_value("flags.n", "five")

    def test_set_token_is_refused(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Refusing to store the token"):
            set_value("token", "abc")
        assert not config_path().exists()

    def test_set_through_scalar_is_refused(self, isolated_config: Path) -> None:
        _write_yaml(config_path(), {"organization": "acme"})
        with pytest.raises(ConfigError, match="not a section"):
            set_value("organization.name", "x")

    def test_set_empty_key_part(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid config key"):
            set_value("a..b", "x")


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolution:
    def test_base_url_default(self, isolated_config: Path) -> None:
        assert resolve_base_url(AppConfig()) == DEFAULT_BASE_URL

    def test_base_url_from_config(self, isolated_config: Path) -> None:
        assert resolve_base_url(AppConfig(base_url="https://api.local/")) == "https://api.local"

    def test_base_url_env_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOURCECRAFT_API_URL", "https://env.local")
        assert resolve_base_url(AppConfig(base_url="https://api.local")) == "https://env.local"

    def test_organization_flag_wins(self, isolated_config: Path) -> None:
        _write_yaml(config_path(), {"organization": "from-config"})
        assert resolve_organization("from-flag") == "from-flag"
        assert resolve_organization(None) == "from-config"

    def test_organization_missing(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Organization not specified"):
            resolve_organization(None)

    def test_build_client_config(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOURCECRAFT_TOKEN", "env-token")
        _write_yaml(config_path(), {"base_url": "https://api.local"})
        config = build_client_config()
        assert config.token == "env-token"
        assert config.base_url == "https://api.local"
        assert config.request.max_retries == 3
        assert "env-token" not in repr(config)

    def test_build_client_config_without_token(self, isolated_config: Path) -> None:
        with pytest.raises(TokenNotFoundError):
            build_client_config()
