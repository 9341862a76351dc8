"""Milestone commands.

Dates are entered as ``YYYY-MM-DD`` and sent as midnight UTC in RFC 3339
form.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import typer

from srccli.commands._common import (
    open_api,
    repo_option,
    resolve_repo,
    show_list,
    show_model,
    slugify,
    value_or_dash,
    web_url,
)
from srccli.exceptions import InvalidUsageError
from srccli.models import CreateMilestoneBody, Milestone
from srccli.output import relative_time, success, suggest

milestone_app = typer.Typer(no_args_is_help=True)

DATE_FORMAT = "%Y-%m-%d"


def to_rfc3339(value: Optional[str], option: str) -> Optional[str]:
    """Convert ``YYYY-MM-DD`` to ``YYYY-MM-DDT00:00:00Z``.

    Raises:
        InvalidUsageError: *value* is not a valid date.
    """
    if not value:
        return None
    try:
        day = datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        raise InvalidUsageError(
            f"invalid {option} '{value}'. Expected format: YYYY-MM-DD"
        ) from None
    return day.strftime("%Y-%m-%dT00:00:00Z")


def _milestone_fields(m: Milestone) -> list[tuple[str, str]]:
    return [
        ("Name", value_or_dash(m.name)),
        ("Slug", value_or_dash(m.slug)),
        ("Status", value_or_dash(m.status)),
        ("Start", value_or_dash(m.start_date)),
        ("Deadline", value_or_dash(m.deadline)),
        ("Author", value_or_dash(m.author.slug if m.author else None)),
        ("Updated", relative_time(m.updated_at)),
        ("Description", value_or_dash(m.description)),
    ]


@milestone_app.command("list")
def milestone_list(ctx: typer.Context, repo: Optional[str] = repo_option()) -> None:
    """List milestones of a repository."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        milestones = api.list_milestones(org, slug)

    rows = [
        [
            value_or_dash(m.slug),
            value_or_dash(m.name),
            value_or_dash(m.status),
            value_or_dash(m.deadline),
            relative_time(m.updated_at),
        ]
        for m in milestones
    ]
    show_list(
        milestones,
        ["SLUG", "NAME", "STATUS", "DEADLINE", "UPDATED"],
        rows,
        "No milestones found.",
    )


@milestone_app.command("create")
def milestone_create(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Milestone name."),
    slug: Optional[str] = typer.Option(None, "--slug", help="Slug (default: derived from the name)."),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description."),
    start_date: Optional[str] = typer.Option(None, "--start-date", help="Start date, YYYY-MM-DD."),
    deadline: Optional[str] = typer.Option(None, "--deadline", help="Deadline, YYYY-MM-DD."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Create a milestone.

    Example::

        src milestone create --name "Release 1.0" --deadline 2026-12-31
    """
    with open_api(ctx) as api:
        body = CreateMilestoneBody(
            name=name,
            slug=slug or slugify(name) or None,
            description=description,
            start_date=to_rfc3339(start_date, "--start-date"),
            deadline=to_rfc3339(deadline, "--deadline"),
        )
        org, repo_slug = resolve_repo(repo)
        milestone = api.create_milestone(org, repo_slug, body)

    success(f"Created milestone '{milestone.name or name}' in {org}/{repo_slug}")
    show_model(milestone, _milestone_fields(milestone))
    suggest(f"View: {web_url(org, repo_slug, 'milestones', milestone.slug or body.slug or '')}")


@milestone_app.command("view")
def milestone_view(
    ctx: typer.Context,
    milestone_slug: str = typer.Argument(help="Milestone slug."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Show a milestone."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        milestone = api.get_milestone(org, slug, milestone_slug)
    show_model(milestone, _milestone_fields(milestone))
