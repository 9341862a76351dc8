"""Thin wrappers around the ``git`` executable.

Every helper runs ``git`` as a subprocess in the current working
directory. Failures raise :class:`~srccli.exceptions.GitError`; a missing
remote sets ``missing_remote=True`` so callers can fall back. Helpers whose
failure should not stop a command (e.g. collecting commit titles for a PR
body) log a warning and return an empty value instead.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from srccli.exceptions import GitError
from srccli.models import Repository

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_FALLBACK = "main"


def _capture(*args: str) -> str:
    """Run ``git *args`` and return its stripped stdout."""
    try:
        proc = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found on PATH") from exc
    if proc.returncode != 0:
        stderr = proc.stderr.strip()
        raise GitError(
            f"'git {' '.join(args)}' failed (exit {proc.returncode}): {stderr}",
            missing_remote="no such remote" in stderr.lower(),
        )
    return proc.stdout.strip()


def run(*args: str, cwd: Optional[Path] = None) -> None:
    """Run ``git *args`` with output streamed to the terminal.

    Raises:
        GitError: git is missing or exits non-zero.
    """
    try:
        proc = subprocess.run(["git", *args], cwd=cwd, check=False)
    except FileNotFoundError as exc:
        raise GitError("git executable not found on PATH") from exc
    if proc.returncode != 0:
        raise GitError(f"'git {' '.join(args)}' failed (exit {proc.returncode})")


# --- Remotes ---


def parse_owner_and_repo(remote_url: str) -> tuple[str, str]:
    """Extract ``(org, repo)`` from an HTTPS, ``ssh://`` or ``git@host:`` URL.

    Credentials embedded in HTTPS URLs are ignored and a ``.git`` suffix
    is dropped.

    Raises:
        GitError: The URL has an unsupported scheme or no ``org/repo`` path.
    """
    url = remote_url.strip()
    if url.startswith(("https://", "http://", "ssh://")):
        repo_path = urlsplit(url).path
    elif url.startswith("git@"):
        _, sep, rest = url.partition(":")
        if not sep:
            raise GitError(f"could not parse git@ URL '{remote_url}'")
        repo_path = "/" + rest
    else:
        raise GitError(f"unsupported remote URL format '{remote_url}'")

    full_slug = repo_path.strip("/")
    if full_slug.endswith(".git"):
        full_slug = full_slug[: -len(".git")]
    org, _, repo = full_slug.partition("/")
    if not org or not repo or "/" in repo:
        raise GitError(
            f"could not extract owner/repo from path '{repo_path}' (parsed from URL '{remote_url}')"
        )
    return org, repo


def get_remote_url(name: str) -> str:
    try:
        return _capture("remote", "get-url", name)
    except GitError as exc:
        if exc.missing_remote:
            raise GitError(f"git remote '{name}' not found", missing_remote=True) from exc
        raise


def repo_from_remote(name: str = "origin") -> tuple[str, str]:
    """Return ``(org, repo)`` for the given remote of the current checkout."""
    return parse_owner_and_repo(get_remote_url(name))


def add_remote(name: str, url: str) -> None:
    _capture("remote", "add", name, url)


# --- Branches and commits ---


def current_branch() -> str:
    """Return the checked-out branch name.

    Raises:
        GitError: Not in a repository, or HEAD is detached.
    """
    branch = _capture("rev-parse", "--abbrev-ref", "HEAD")
    if branch == "HEAD":
        raise GitError("currently in detached HEAD state, not on a branch")
    return branch


def default_branch(repo: Optional[Repository] = None, remote: str = "origin") -> str:
    """Work out the default branch of *repo*.

    Uses the API's ``default_branch`` when known, then the ``HEAD branch``
    line of ``git remote show``, and finally ``main``.
    """
    if repo is not None and repo.default_branch:
        return repo.default_branch

    try:
        output = _capture("remote", "show", remote)
    except GitError as exc:
        logger.warning("Could not query remote '%s': %s", remote, exc)
        return DEFAULT_BRANCH_FALLBACK

    for line in output.splitlines():
        label, sep, value = line.strip().partition(":")
        if sep and label == "HEAD branch":
            branch = value.strip()
            if branch and branch != "(unknown)":
                return branch

    logger.warning(
        "Could not determine the default branch of '%s'; assuming '%s'",
        remote,
        DEFAULT_BRANCH_FALLBACK,
    )
    return DEFAULT_BRANCH_FALLBACK


def last_commit_title(ref: str) -> str:
    return _capture("log", "-1", "--pretty=%s", ref)


def commit_titles_since(base: str, head: str) -> str:
    """Return the titles of commits in ``base..head``, one per line.

    Failures are not fatal: a warning is logged and ``""`` returned.
    """
    try:
        return _capture("log", "--pretty=%s", f"{base}..{head}")
    except GitError as exc:
        logger.warning("Could not read commit messages for %s..%s: %s", base, head, exc)
        return ""


# --- Working tree ---


def find_git_dir() -> Path:
    """Return the ``.git`` directory of the current repository.

    Raises:
        GitError: The working directory is not inside a git repository.
    """
    return Path(_capture("rev-parse", "--git-dir")).resolve()


def has_merge_conflicts() -> list[str]:
    """Return the paths with unresolved merge conflicts (empty if none)."""
    output = _capture("diff", "--name-only", "--diff-filter=U")
    return [line for line in output.splitlines() if line]
