"""Tests for ``src hooks``."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from srccli.commands.hooks import HOOK_SCRIPTS
from srccli.exceptions import GitError


@pytest.fixture
def git_dir(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = isolated_config / "repo" / ".git"
    (path / "hooks").mkdir(parents=True)
    monkeypatch.setattr("srccli.git.find_git_dir", lambda: path)
    return path


class TestHookScripts:
    @pytest.mark.parametrize("name", ["pre-commit", "pre-push"])
    def test_shell_script(self, name: str) -> None:
        script = HOOK_SCRIPTS[name]
        assert script.startswith("#!/bin/sh\n")
        assert script.rstrip().endswith("exit 0")

    def test_pre_push_reads_remote_arguments(self) -> None:
        assert 'remote="$1"' in HOOK_SCRIPTS["pre-push"]
        assert 'url="$2"' in HOOK_SCRIPTS["pre-push"]


class TestInstall:
    def test_install(self, git_dir: Path, invoke) -> None:
        result = invoke("hooks", "install", "pre-push")
        assert result.exit_code == 0, result.output
        hook = git_dir / "hooks" / "pre-push"
        assert hook.read_text() == HOOK_SCRIPTS["pre-push"]
        assert stat.S_IMODE(os.stat(hook).st_mode) == 0o755
        assert f"Installed pre-push hook at {hook}" in result.output

    def test_overwrite_warns(self, git_dir: Path, invoke) -> None:
        hook = git_dir / "hooks" / "pre-commit"
        hook.write_text("old")
        result = invoke("hooks", "install", "pre-commit")
        assert result.exit_code == 0
        assert "Warning: Overwriting existing pre-commit hook" in result.output
        assert hook.read_text() == HOOK_SCRIPTS["pre-commit"]

    def test_unsupported_type(self, git_dir: Path, invoke) -> None:
        result = invoke("hooks", "install", "post-merge")
        assert result.exit_code == 2
        assert "unsupported hook type 'post-merge'. Supported: pre-commit, pre-push" in result.output

    def test_not_a_repository(self, isolated_config: Path, invoke, monkeypatch) -> None:
        def fail():
            raise GitError("'git rev-parse --git-dir' failed (exit 128): not a git repository")

        monkeypatch.setattr("srccli.git.find_git_dir", fail)
        result = invoke("hooks", "install", "pre-commit")
        assert result.exit_code == 8
        assert "not a git repository" in result.output
