"""Auth commands -- manage the stored SourceCraft API token.

Typical workflow::

    src auth login     # paste a personal access token
    src auth status    # see where the active token comes from
    src auth logout    # forget the stored token
"""

from __future__ import annotations

import os

import typer

from srccli.auth import TOKEN_ENV_VAR, CredentialEntry, CredentialStore
from srccli.commands._common import cli_errors, config_file
from srccli.config import load_raw_config
from srccli.exceptions import SrcError
from srccli.output import error, info, print_fields, success, suggest

auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    token: str = typer.Option(
        "",
        "--token",
        help="Token value. Prompted for (hidden) when omitted.",
    ),
) -> None:
    """Store a personal access token for API requests.

    The token is written to the credential store with owner-only
    permissions. ``SOURCECRAFT_TOKEN`` still takes precedence when set.

    Example::

        src auth login
    """
    if not token:
        token = typer.prompt(
            "Paste your SourceCraft token",
            hide_input=True,
            default="",
            show_default=False,
        )
    token = token.strip()
    if not token:
        error("Token cannot be empty.")
        raise typer.Exit(code=2)

    store = CredentialStore()
    with cli_errors():
        try:
            store.save(CredentialEntry(credential=token))
        except OSError as exc:
            raise SrcError(f"could not save the token to {store.path}: {exc}") from exc
    success("Token saved.")
    if os.environ.get(TOKEN_ENV_VAR):
        info(f"Note: {TOKEN_ENV_VAR} is set and overrides the stored token.")
    suggest("Check it: src auth status")


@auth_app.command("logout")
def auth_logout() -> None:
    """Remove the stored token."""
    if CredentialStore().clear():
        success("Stored token removed.")
    else:
        info("No stored token.")
    if os.environ.get(TOKEN_ENV_VAR):
        info(f"{TOKEN_ENV_VAR} is still set in the environment.")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show which credential source provides the token.

    The token value itself is never printed.
    """
    if os.environ.get(TOKEN_ENV_VAR, "").strip():
        print_fields([("Source", f"environment ({TOKEN_ENV_VAR})")])
        return

    store = CredentialStore()
    entry = store.load()
    if entry is not None and entry.credential:
        print_fields(
            [
                ("Source", f"credential store ({store.path})"),
                ("Stored", entry.created_at.strftime("%Y-%m-%d %H:%M UTC")),
                ("Origin", entry.source),
            ]
        )
        return

    with cli_errors():
        legacy = load_raw_config(config_file(ctx)).get("token")
    if legacy:
        print_fields([("Source", "config file (moved to the credential store on next use)")])
        return

    error("Not logged in.")
    suggest(f"Run 'src auth login' or set {TOKEN_ENV_VAR}.")
    raise typer.Exit(code=3)
