"""Tests for the credential store."""

from __future__ import annotations

import json
import os
import stat
from datetime import datetime, timezone
from pathlib import Path

import pytest

from srccli.auth.credential_store import CredentialEntry, CredentialStore


@pytest.fixture()
def store(isolated_config: Path) -> CredentialStore:
    return CredentialStore()


class TestCredentialEntry:
    def test_defaults(self) -> None:
        entry = CredentialEntry(credential="abc123")
        assert entry.source == "login"
        assert entry.created_at.tzinfo is not None

    def test_credential_not_in_repr(self) -> None:
        assert "abc123" not in repr(CredentialEntry(credential="abc123"))


class TestCredentialStore:
    def test_path_is_under_data_dir(self, store: CredentialStore, isolated_config: Path) -> None:
        assert store.path == isolated_config / "data" / "src" / "credentials" / "token.json"

    def test_load_missing(self, store: CredentialStore) -> None:
        assert store.load() is None

    def test_save_and_load(self, store: CredentialStore) -> None:
        created = datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
        store.save(CredentialEntry(credential="tok", created_at=created, source="migrated"))
        loaded = store.load()
        assert loaded is not None
        assert loaded.credential == "tok"
        assert loaded.created_at == created
        assert loaded.source == "migrated"

    def test_file_is_owner_only(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(credential="tok"))
        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    def test_file_is_json(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(credential="tok"))
        assert json.loads(store.path.read_text())["credential"] == "tok"

    def test_overwrite(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(credential="old"))
        store.save(CredentialEntry(credential="new"))
        assert store.load().credential == "new"

    @pytest.mark.parametrize("content", ["not json", "[]", '{"source": "login"}'])
    def test_unreadable_file_is_none(self, store: CredentialStore, content: str) -> None:
        store.path.write_text(content)
        assert store.load() is None

    def test_clear(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(credential="tok"))
        assert store.clear() is True
        assert not store.path.exists()
        assert store.clear() is False

    def test_named_store(self, isolated_config: Path) -> None:
        assert CredentialStore("ci").path.name == "ci.json"
