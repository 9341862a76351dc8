"""Issue commands."""

from __future__ import annotations

from typing import Optional

import typer

from srccli.commands._common import (
    open_api,
    prompt_text,
    repo_option,
    resolve_repo,
    show_list,
    show_model,
    value_or_dash,
    web_url,
)
from srccli.exceptions import InvalidUsageError
from srccli.models import CreateIssueBody, Issue, IssuePriority, UpdateIssueBody
from srccli.output import info, relative_time, shorten, success, suggest

issue_app = typer.Typer(no_args_is_help=True)

CLOSED_STATUS = "closed"


def _issue_fields(issue: Issue) -> list[tuple[str, str]]:
    labels = ", ".join(label.name or label.slug or "" for label in issue.labels)
    return [
        ("ID", value_or_dash(issue.slug)),
        ("Title", value_or_dash(issue.title)),
        ("Status", value_or_dash(issue.status.name if issue.status else None)),
        ("Priority", value_or_dash(issue.priority)),
        ("Author", value_or_dash(issue.author.slug if issue.author else None)),
        ("Assignee", value_or_dash(issue.assignee.slug if issue.assignee else None)),
        ("Milestone", value_or_dash(issue.milestone.slug if issue.milestone else None)),
        ("Labels", labels or "-"),
        ("Created", relative_time(issue.created_at)),
        ("Updated", relative_time(issue.updated_at)),
        ("Description", value_or_dash(issue.description)),
    ]


@issue_app.command("list")
def issue_list(ctx: typer.Context, repo: Optional[str] = repo_option()) -> None:
    """List issues of a repository."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        issues = api.list_issues(org, slug)

    rows = [
        [
            value_or_dash(i.slug),
            shorten(i.title) or "-",
            value_or_dash(i.status.name if i.status else None),
            value_or_dash(i.assignee.slug if i.assignee else None),
            value_or_dash(i.priority),
            relative_time(i.updated_at),
        ]
        for i in issues
    ]
    show_list(
        issues,
        ["ID", "TITLE", "STATUS", "ASSIGNEE", "PRIORITY", "UPDATED"],
        rows,
        "No issues found.",
    )


@issue_app.command("create")
def issue_create(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title (prompted when omitted)."),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Description (prompted when omitted)."
    ),
    priority: Optional[IssuePriority] = typer.Option(None, "--priority", help="Issue priority."),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Assignee user ID."),
    milestone: Optional[str] = typer.Option(None, "--milestone", help="Milestone ID."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Open an issue.

    Example::

        src issue create --title "Crash on start" --priority critical
    """
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        if title is None:
            title = prompt_text("Title")
        if not title.strip():
            raise InvalidUsageError("issue title cannot be empty")
        if description is None:
            description = prompt_text("Description")

        issue = api.create_issue(
            org,
            slug,
            CreateIssueBody(
                title=title.strip(),
                description=description or None,
                priority=priority,
                assignee_id=assignee,
                milestone_id=milestone,
            ),
        )

    success(f"Created issue #{issue.slug} in {org}/{slug}")
    show_model(issue, _issue_fields(issue))
    suggest(f"View: {web_url(org, slug, 'issues', issue.slug or '')}")


@issue_app.command("view")
def issue_view(
    ctx: typer.Context,
    issue_slug: str = typer.Argument(help="Issue ID."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Show an issue."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        issue = api.get_issue(org, slug, issue_slug)
    show_model(issue, _issue_fields(issue))


@issue_app.command("update")
def issue_update(
    ctx: typer.Context,
    issue_slug: str = typer.Argument(help="Issue ID."),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title."),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description."),
    status: Optional[str] = typer.Option(None, "--status", help="New status slug (e.g. 'open', 'closed')."),
    priority: Optional[IssuePriority] = typer.Option(None, "--priority", help="New priority."),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="New assignee user ID."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Change fields of an issue. Only the options given are sent."""
    body = UpdateIssueBody(
        title=title,
        description=description,
        status_slug=status,
        priority=priority.value if priority else None,
        assignee_id=assignee,
    )
    if body.is_empty():
        info("Nothing to update. Pass at least one of --title, --description, --status, --priority, --assignee.")
        return

    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        issue = api.update_issue(org, slug, issue_slug, body)
    success(f"Updated issue #{issue.slug or issue_slug}")


@issue_app.command("close")
def issue_close(
    ctx: typer.Context,
    issue_slug: str = typer.Argument(help="Issue ID."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Close an issue."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        api.update_issue(org, slug, issue_slug, UpdateIssueBody(status_slug=CLOSED_STATUS))
    success(f"Closed issue #{issue_slug} in {org}/{slug}")
