"""Repository commands -- list, create, view, fork, clone and sync.

``clone`` and ``sync`` drive the local ``git`` executable; the others are
plain API calls.
"""

from __future__ import annotations

from typing import Optional

import typer

from srccli import git
from srccli.client import SourceCraftAPI
from srccli.commands._common import (
    cli_errors,
    config_file,
    open_api,
    parse_repo_ref,
    prompt_text,
    show_list,
    show_model,
    slugify,
    value_or_dash,
    web_url,
)
from srccli.config import resolve_organization
from srccli.exceptions import GitError, InvalidUsageError
from srccli.models import (
    CloneURL,
    CreateRepositoryBody,
    ForkRepositoryBody,
    Repository,
    Visibility,
)
from srccli.output import info, relative_time, shorten, success, suggest, warning

repo_app = typer.Typer(no_args_is_help=True)

ORG_HELP = "Organization slug (default: 'organization' from the config file)."


def _repo_ref(ctx: typer.Context, ref: str) -> tuple[str, str]:
    """Accept ``<org>/<repo>`` or a bare repo slug in the configured organization."""
    if "/" in ref:
        return parse_repo_ref(ref)
    return resolve_organization(None, config_file(ctx)), ref


def _pick_clone_url(clone_url: Optional[CloneURL], https: bool) -> str:
    """Return the SSH clone URL, or HTTPS when asked for or when SSH is missing."""
    ssh_url = clone_url.ssh if clone_url else None
    https_url = clone_url.https if clone_url else None
    if https:
        if not https_url:
            raise InvalidUsageError("repository has no HTTPS clone URL")
        return https_url
    if ssh_url:
        return ssh_url
    if https_url:
        return https_url
    raise InvalidUsageError("repository has no clone URL")


def _repo_fields(repo: Repository) -> list[tuple[str, str]]:
    owner = repo.owner.slug if repo.owner and repo.owner.slug else "-"
    return [
        ("Name", value_or_dash(repo.name)),
        ("Slug", f"{owner}/{value_or_dash(repo.slug)}"),
        ("Description", value_or_dash(repo.description)),
        ("Visibility", value_or_dash(repo.visibility)),
        ("Default branch", value_or_dash(repo.default_branch)),
        ("Language", value_or_dash(repo.language.name if repo.language else None)),
        ("Updated", relative_time(repo.last_updated)),
        ("SSH", value_or_dash(repo.clone_url.ssh if repo.clone_url else None)),
        ("HTTPS", value_or_dash(repo.clone_url.https if repo.clone_url else None)),
    ]


@repo_app.command("list")
def repo_list(
    ctx: typer.Context,
    org: Optional[str] = typer.Option(None, "--org", "-o", help=ORG_HELP),
) -> None:
    """List repositories of an organization.

    Example::

        src repo list --org my-org
    """
    with open_api(ctx) as api:
        org = resolve_organization(org, config_file(ctx))
        repos = api.list_repositories(org)

    rows = [
        [
            value_or_dash(r.slug),
            value_or_dash(r.visibility),
            shorten(r.description) or "-",
            relative_time(r.last_updated),
        ]
        for r in repos
    ]
    show_list(
        repos,
        ["NAME", "VISIBILITY", "DESCRIPTION", "UPDATED"],
        rows,
        f"No repositories found in '{org}'.",
    )


@repo_app.command("create")
def repo_create(
    ctx: typer.Context,
    name: str = typer.Argument(help="Display name of the new repository."),
    slug: Optional[str] = typer.Option(None, "--slug", help="URL slug (default: derived from the name)."),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description."),
    visibility: Optional[Visibility] = typer.Option(None, "--visibility", help="Repository visibility."),
    org: Optional[str] = typer.Option(None, "--org", "-o", help=ORG_HELP),
) -> None:
    """Create a repository.

    Example::

        src repo create "My Service" --visibility private
    """
    with open_api(ctx) as api:
        org = resolve_organization(org, config_file(ctx))
        slug = slug or slugify(name)
        if not slug:
            raise InvalidUsageError(f"cannot derive a slug from '{name}'; pass --slug")
        repo = api.create_repository(
            org,
            CreateRepositoryBody(
                name=name,
                slug=slug,
                description=description,
                visibility=visibility,
            ),
        )

    success(f"Created repository {org}/{repo.slug or slug}")
    show_model(repo, _repo_fields(repo))
    suggest(f"View: {web_url(org, repo.slug or slug)}")


@repo_app.command("view")
def repo_view(
    ctx: typer.Context,
    ref: str = typer.Argument(help="<org>/<repo>, or a repo slug in the configured organization."),
) -> None:
    """Show details of a repository."""
    with open_api(ctx) as api:
        org, slug = _repo_ref(ctx, ref)
        repo = api.get_repository(org, slug)
    show_model(repo, _repo_fields(repo))


@repo_app.command("fork")
def repo_fork(
    ctx: typer.Context,
    ref: str = typer.Argument(help="Repository to fork as <org>/<repo>."),
    org: Optional[str] = typer.Option(None, "--org", "-o", help="Target organization for the fork."),
    name: Optional[str] = typer.Option(None, "--name", help="Slug of the fork (default: same as the source)."),
    default_branch_only: bool = typer.Option(
        False, "--default-branch-only", help="Copy only the default branch."
    ),
) -> None:
    """Fork a repository into an organization.

    Example::

        src repo fork upstream-org/tool --org my-org --name tool-fork
    """
    with open_api(ctx) as api:
        src_org, src_repo = parse_repo_ref(ref)
        target_org = resolve_organization(org, config_file(ctx))
        fork = api.fork_repository(
            src_org,
            src_repo,
            ForkRepositoryBody(
                org_slug=target_org,
                slug=name,
                default_branch_only=True if default_branch_only else None,
            ),
        )

    owner = fork.owner.slug if fork.owner and fork.owner.slug else target_org
    success(f"Forked {src_org}/{src_repo} to {owner}/{fork.slug or name or src_repo}")
    show_model(
        fork,
        [
            ("Slug", f"{owner}/{value_or_dash(fork.slug)}"),
            ("SSH", value_or_dash(fork.clone_url.ssh if fork.clone_url else None)),
        ],
    )


@repo_app.command("clone")
def repo_clone(
    ctx: typer.Context,
    ref: str = typer.Argument(help="Clone URL, <org>/<repo>, or a repo slug in the configured organization."),
    directory: Optional[str] = typer.Argument(None, help="Target directory."),
    https: bool = typer.Option(False, "--https", help="Clone over HTTPS instead of SSH."),
) -> None:
    """Clone a repository with git.

    SSH is used when the repository offers it, HTTPS otherwise.
    """
    if ref.startswith(("https://", "http://", "ssh://", "git@")):
        url = ref
    else:
        with open_api(ctx) as api:
            org, slug = _repo_ref(ctx, ref)
            repo = api.get_repository(org, slug)
            url = _pick_clone_url(repo.clone_url, https)

    args = ["clone", url]
    if directory:
        args.append(directory)
    info(f"Cloning {url}...")
    with cli_errors():
        git.run(*args)


@repo_app.command("sync")
def repo_sync(
    ctx: typer.Context,
    push: bool = typer.Option(False, "--push", help="Push the synced branch to origin."),
    https: bool = typer.Option(False, "--https", help="Use HTTPS when adding the upstream remote."),
) -> None:
    """Merge the upstream default branch into a fork's checkout.

    The ``upstream`` remote is added when missing, using the fork's parent
    repository. Merge conflicts are reported and left for you to resolve.
    """
    with open_api(ctx) as api:
        org, slug = git.repo_from_remote("origin")
        repo = api.get_repository(org, slug)
        branch = git.default_branch(repo)
        _ensure_upstream(api, repo, https)

        info("Fetching upstream...")
        git.run("fetch", "upstream")
        git.run("checkout", branch)
        try:
            git.run("merge", "--no-ff", f"upstream/{branch}")
        except GitError:
            conflicts = git.has_merge_conflicts()
            if not conflicts:
                raise
            warning(f"Merge of upstream/{branch} stopped with conflicts:")
            for path in conflicts:
                info(f"  {path}")
            suggest("Resolve the conflicts, then run 'git add <files>' and 'git commit'.")
            return

        if push:
            git.run("push", "origin", branch)

    success(f"Branch '{branch}' is up to date with upstream.")


def _ensure_upstream(api: SourceCraftAPI, repo: Repository, https: bool) -> None:
    try:
        git.get_remote_url("upstream")
        return
    except GitError as exc:
        if not exc.missing_remote:
            raise

    parent = repo.parent
    if parent and parent.owner and parent.owner.slug and parent.slug:
        up_org, up_repo = parent.owner.slug, parent.slug
        clone_url = parent.clone_url
    else:
        up_org, up_repo = parse_repo_ref(prompt_text("Upstream repository (<org>/<repo>)"))
        clone_url = None
    if clone_url is None or not (clone_url.ssh or clone_url.https):
        clone_url = api.get_repository(up_org, up_repo).clone_url

    url = _pick_clone_url(clone_url, https)
    git.add_remote("upstream", url)
    info(f"Added remote 'upstream' -> {url}")
