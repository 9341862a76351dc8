"""Helpers shared by every command group.

* :func:`open_api` -- builds the per-invocation
  :class:`~srccli.models.ClientConfig`, opens a
  :class:`~srccli.client.Transport` and yields a
  :class:`~srccli.client.SourceCraftAPI`. Any
  :class:`~srccli.exceptions.SrcError` raised inside the block is printed
  and turned into the matching exit code.
* :func:`resolve_repo` -- ``--repo <org>/<repo>`` or the ``origin`` remote.
* :func:`cli_errors` -- the same error handling for commands that never
  touch the API.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

import typer
from pydantic import BaseModel

from srccli import git
from srccli.client import SourceCraftAPI, Transport
from srccli.config import build_client_config
from srccli.exceptions import GitError, InvalidUsageError, SrcError
from srccli.models import WEB_BASE_URL
from srccli.output import OutputFormat, error, get_output

REPO_HELP = "Repository as <org>/<repo> (default: the 'origin' remote of the current checkout)."


def repo_option() -> Optional[str]:
    return typer.Option(None, "--repo", "-R", help=REPO_HELP)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Print a :class:`SrcError` and exit with its code."""
    try:
        yield
    except SrcError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def config_file(ctx: typer.Context) -> Optional[Path]:
    """Return the config path chosen by the root callback, if any."""
    obj = ctx.obj or {}
    return obj.get("config_path")


@contextmanager
def open_api(ctx: typer.Context) -> Iterator[SourceCraftAPI]:
    """Yield a ready :class:`SourceCraftAPI` for the duration of a command."""
    with cli_errors():
        config = build_client_config(config_file(ctx))
        with Transport(config) as transport:
            yield SourceCraftAPI(transport)


def parse_repo_ref(ref: str) -> tuple[str, str]:
    """Split ``<org>/<repo>``.

    Raises:
        InvalidUsageError: *ref* does not have exactly two non-empty parts.
    """
    org, sep, repo = ref.strip().partition("/")
    if not sep or not org or not repo or "/" in repo:
        raise InvalidUsageError(
            f"invalid repository format '{ref}'. Expected: <org>/<repo>"
        )
    return org, repo


def resolve_repo(ref: Optional[str]) -> tuple[str, str]:
    """Return ``(org, repo)`` from *ref* or from the ``origin`` remote."""
    if ref:
        return parse_repo_ref(ref)
    try:
        return git.repo_from_remote("origin")
    except GitError as exc:
        raise InvalidUsageError(
            f"could not identify the repository from git remote 'origin' ({exc}). "
            "Use --repo <org>/<repo>"
        ) from exc


_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lower-case *name* and join its alphanumeric runs with ``-``."""
    return _SLUG_INVALID.sub("-", name.lower()).strip("-")


def web_url(org: str, repo: str, *parts: str) -> str:
    return "/".join([WEB_BASE_URL, org, repo, *parts])


def prompt_text(label: str, default: str = "") -> str:
    """Prompt on the terminal; an empty answer returns *default*."""
    hint = default.splitlines()[0] if default else ""
    answer = typer.prompt(label, default=hint, show_default=bool(hint))
    answer = answer.strip()
    if answer == hint:
        return default
    return answer


def value_or_dash(value: Optional[str]) -> str:
    return value if value else "-"


def show_model(model: BaseModel, fields: list[tuple[str, str]]) -> None:
    """Print *fields* for a person, or the whole *model* under ``--json``."""
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(model.model_dump(mode="json", exclude_none=True))
    else:
        output.print_fields(fields)


def show_list(
    models: Sequence[BaseModel],
    headers: list[str],
    rows: list[list[str]],
    empty_message: str,
) -> None:
    """Print a table of *rows*, or the raw *models* under ``--json``."""
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response([m.model_dump(mode="json", exclude_none=True) for m in models])
        return
    if not rows:
        output.info(empty_message)
        return
    output.print_table(headers, rows)
