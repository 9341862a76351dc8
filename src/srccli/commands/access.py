"""Access commands -- repository roles granted to users.

Example::

    src access role list -R my-org/tool
    src access role add my-org/tool 6f1c... developer
"""

from __future__ import annotations

from typing import Optional

import typer

from srccli.commands._common import (
    cli_errors,
    open_api,
    parse_repo_ref,
    repo_option,
    resolve_repo,
    show_list,
    value_or_dash,
)
from srccli.exceptions import InvalidUsageError
from srccli.models import RepoRole
from srccli.output import success

access_app = typer.Typer(no_args_is_help=True)
role_app = typer.Typer(no_args_is_help=True)
access_app.add_typer(role_app, name="role", help="Manage repository roles.")

ROLE_HELP = "Role: " + ", ".join(r.value for r in RepoRole) + "."


def parse_role(value: str) -> RepoRole:
    """Return the :class:`RepoRole` named by *value* (case-insensitive).

    Raises:
        InvalidUsageError: *value* is not a known role.
    """
    try:
        return RepoRole(value.strip().lower())
    except ValueError:
        valid = ", ".join(r.value for r in RepoRole)
        raise InvalidUsageError(f"invalid role '{value}'. Valid roles: {valid}") from None


@role_app.command("list")
def role_list(ctx: typer.Context, repo: Optional[str] = repo_option()) -> None:
    """List roles granted on a repository."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        roles = api.list_repo_roles(org, slug)

    rows = [
        [
            value_or_dash(r.subject.type if r.subject else None),
            value_or_dash(r.subject.id if r.subject else None),
            value_or_dash(r.role),
        ]
        for r in roles
    ]
    show_list(roles, ["SUBJECT TYPE", "SUBJECT ID", "ROLE"], rows, f"No roles found in {org}/{slug}.")


@role_app.command("add")
def role_add(
    ctx: typer.Context,
    repo: str = typer.Argument(help="Repository as <org>/<repo>."),
    user_id: str = typer.Argument(help="User ID to grant the role to."),
    role: str = typer.Argument(help=ROLE_HELP),
) -> None:
    """Grant a role on a repository to a user."""
    with cli_errors():
        org, slug = parse_repo_ref(repo)
        repo_role = parse_role(role)
    with open_api(ctx) as api:
        api.add_repo_role(org, slug, user_id, repo_role)
    success(f"Granted '{repo_role.value}' on {org}/{slug} to user {user_id}")


@role_app.command("remove")
def role_remove(
    ctx: typer.Context,
    repo: str = typer.Argument(help="Repository as <org>/<repo>."),
    user_id: str = typer.Argument(help="User ID to revoke the role from."),
    role: str = typer.Argument(help=ROLE_HELP),
) -> None:
    """Revoke a role on a repository from a user."""
    with cli_errors():
        org, slug = parse_repo_ref(repo)
        repo_role = parse_role(role)
    with open_api(ctx) as api:
        api.remove_repo_role(org, slug, user_id, repo_role)
    success(f"Revoked '{repo_role.value}' on {org}/{slug} from user {user_id}")
