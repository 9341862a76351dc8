"""Pull request commands.

``create`` fills its defaults from the local checkout: the current branch
is the source, the repository's default branch the target, and the commit
titles between them seed the title and description prompts.
"""

from __future__ import annotations

from typing import Optional

import typer

from srccli import git
from srccli.commands._common import (
    cli_errors,
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
from srccli.models import (
    CreatePullRequestBody,
    MergeParameters,
    PullRequest,
    UpdatePullRequestBody,
)
from srccli.output import info, relative_time, shorten, success, suggest, warning

pr_app = typer.Typer(no_args_is_help=True)


def _pr_fields(pr: PullRequest) -> list[tuple[str, str]]:
    return [
        ("ID", value_or_dash(pr.slug)),
        ("Title", value_or_dash(pr.title)),
        ("Status", value_or_dash(pr.status)),
        ("Branches", f"{value_or_dash(pr.source_branch)} -> {value_or_dash(pr.target_branch)}"),
        ("Author", value_or_dash(pr.author.slug if pr.author else None)),
        ("Created", relative_time(pr.created_at)),
        ("Updated", relative_time(pr.updated_at)),
        ("Description", value_or_dash(pr.description)),
    ]


@pr_app.command("list")
def pr_list(ctx: typer.Context, repo: Optional[str] = repo_option()) -> None:
    """List pull requests of a repository."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        prs = api.list_pull_requests(org, slug)

    rows = [
        [
            value_or_dash(p.slug),
            shorten(p.title) or "-",
            f"{value_or_dash(p.source_branch)} -> {value_or_dash(p.target_branch)}",
            value_or_dash(p.status),
            value_or_dash(p.author.slug if p.author else None),
            relative_time(p.updated_at),
        ]
        for p in prs
    ]
    show_list(
        prs,
        ["ID", "TITLE", "SOURCE -> TARGET", "STATUS", "AUTHOR", "UPDATED"],
        rows,
        "No pull requests found.",
    )


@pr_app.command("create")
def pr_create(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title (prompted when omitted)."),
    body: Optional[str] = typer.Option(None, "--body", "-b", help="Description (prompted when omitted)."),
    base: Optional[str] = typer.Option(None, "--base", help="Target branch (default: the repository's default branch)."),
    head: Optional[str] = typer.Option(None, "--head", help="Source branch (default: the current branch)."),
    draft: bool = typer.Option(False, "--draft", help="Create the pull request as a draft."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Open a pull request.

    Example::

        src pr create --title "Fix login" --base main
    """
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        head = head or git.current_branch()
        if not base:
            base = git.default_branch(api.get_repository(org, slug))
        if head == base:
            raise InvalidUsageError(
                f"source branch '{head}' and target branch '{base}' are the same"
            )

        if title is None:
            title = prompt_text("Title", git.last_commit_title(head))
        if not title.strip():
            raise InvalidUsageError("pull request title cannot be empty")
        if body is None:
            body = prompt_text("Description", git.commit_titles_since(base, head))

        pr = api.create_pull_request(
            org,
            slug,
            CreatePullRequestBody(
                title=title.strip(),
                source_branch=head,
                target_branch=base,
                description=body or None,
                publish=not draft,
            ),
        )

    success(f"Created pull request #{pr.slug} in {org}/{slug}")
    show_model(pr, _pr_fields(pr))
    suggest(f"View: {web_url(org, slug, 'pr', pr.slug or '')}")


@pr_app.command("view")
def pr_view(
    ctx: typer.Context,
    pr_slug: str = typer.Argument(help="Pull request ID."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Show a pull request."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        pr = api.get_pull_request(org, slug, pr_slug)
    show_model(pr, _pr_fields(pr))


@pr_app.command("edit")
def pr_edit(
    ctx: typer.Context,
    pr_slug: str = typer.Argument(help="Pull request ID."),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title."),
    body: Optional[str] = typer.Option(None, "--body", "-b", help="New description."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Change the title or description of a pull request."""
    if title is None and body is None:
        info("Nothing to update. Pass --title and/or --body.")
        return
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        pr = api.update_pull_request(
            org, slug, pr_slug, UpdatePullRequestBody(title=title, description=body)
        )
    success(f"Updated pull request #{pr.slug or pr_slug}")


@pr_app.command("merge")
def pr_merge(
    ctx: typer.Context,
    pr_slug: str = typer.Argument(help="Pull request ID."),
    squash: bool = typer.Option(False, "--squash", help="Squash commits (not supported by the API)."),
    rebase: bool = typer.Option(False, "--rebase", help="Rebase commits (not supported by the API)."),
    delete_branch: bool = typer.Option(
        False, "--delete-branch", help="Delete the source branch (not supported by the API)."
    ),
    repo: Optional[str] = repo_option(),
) -> None:
    """Approve a pull request for merging.

    The API records an "approve" decision; the merge itself follows the
    repository's settings.
    """
    with cli_errors():
        if squash and rebase:
            raise InvalidUsageError("--squash and --rebase cannot be used together")
    params = MergeParameters(squash=squash, rebase=rebase, delete_branch=delete_branch)
    if params.any_set():
        warning(
            "Merge options are not supported by the API and will be ignored; "
            "only the 'approve' decision is sent."
        )

    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        result = api.merge_pull_request(org, slug, pr_slug, params)

    success(f"Approved pull request #{pr_slug} in {org}/{slug}")
    if result.created_decision:
        info(f"Decision: {result.created_decision}")
