"""Tests for ``src auth``."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from srccli.auth import CredentialEntry, CredentialStore
from srccli.config import config_path


@pytest.fixture
def env(isolated_config: Path) -> Path:
    return isolated_config


class TestLogin:
    def test_login_with_option(self, env, invoke) -> None:
        result = invoke("auth", "login", "--token", "  tok-1 ")
        assert result.exit_code == 0, result.output
        assert "Token saved." in result.output
        assert CredentialStore().load().credential == "tok-1"

    def test_login_prompts(self, env, invoke) -> None:
        result = invoke("auth", "login", input="tok-2\n")
        assert result.exit_code == 0, result.output
        assert CredentialStore().load().credential == "tok-2"
        assert "tok-2" not in result.output

    def test_empty_token(self, env, invoke) -> None:
        result = invoke("auth", "login", input="\n")
        assert result.exit_code == 2
        assert "Token cannot be empty." in result.output
        assert CredentialStore().load() is None

    def test_env_override_note(self, env, invoke, monkeypatch) -> None:
        monkeypatch.setenv("SOURCECRAFT_TOKEN", "env")
        result = invoke("auth", "login", "--token", "tok")
        assert "SOURCECRAFT_TOKEN is set and overrides the stored token" in result.output


class TestLogout:
    def test_logout_removes_token(self, env, invoke) -> None:
        CredentialStore().save(CredentialEntry(credential="tok"))
        result = invoke("auth", "logout")
        assert result.exit_code == 0
        assert "Stored token removed." in result.output
        assert CredentialStore().load() is None

    def test_logout_without_token(self, env, invoke) -> None:
        result = invoke("auth", "logout")
        assert result.exit_code == 0
        assert "No stored token." in result.output


class TestStatus:
    def test_env(self, env, invoke, monkeypatch) -> None:
        monkeypatch.setenv("SOURCECRAFT_TOKEN", "secret-env")
        result = invoke("auth", "status")
        assert result.exit_code == 0
        assert "environment (SOURCECRAFT_TOKEN)" in result.output
        assert "secret-env" not in result.output

    def test_store(self, env, invoke) -> None:
        CredentialStore().save(CredentialEntry(credential="secret-stored"))
        result = invoke("auth", "status")
        assert result.exit_code == 0
        assert "credential store" in result.output
        assert "Origin: login" in result.output
        assert "secret-stored" not in result.output

    def test_legacy_config(self, env, invoke) -> None:
        path = config_path()
        path.write_text(yaml.safe_dump({"token": "legacy"}))
        result = invoke("auth", "status")
        assert result.exit_code == 0
        assert "config file" in result.output

    def test_not_logged_in(self, env, invoke) -> None:
        result = invoke("auth", "status")
        assert result.exit_code == 3
        assert "Error: Not logged in." in result.output
