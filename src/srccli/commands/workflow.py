"""CI/CD workflow commands (also available as ``src wf``).

A run holds workflow runs, which hold task runs, which hold cube runs.
Logs and artifacts are addressed by the full
``<run> <workflow> <task> <cube>`` path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from srccli.commands._common import (
    open_api,
    repo_option,
    resolve_repo,
    show_list,
    value_or_dash,
)
from srccli.exceptions import SrcError
from srccli.models import Run, RunWorkflowBody
from srccli.output import OutputFormat, get_output, print_data, relative_time, success, suggest

workflow_app = typer.Typer(no_args_is_help=True)


def run_tree(run: Run) -> list[str]:
    """Render *run* as indented lines, one per workflow, task and cube."""
    lines = [f"Run {value_or_dash(run.slug or run.id)}: {value_or_dash(run.status)}"]
    for wf in run.workflow_runs:
        lines.append(f"  {value_or_dash(wf.workflow_slug)}: {value_or_dash(wf.status)}")
        for task in wf.task_runs:
            lines.append(f"    {value_or_dash(task.task_slug)}: {value_or_dash(task.status)}")
            for cube in task.cube_runs:
                lines.append(f"      {value_or_dash(cube.cube_slug)}: {value_or_dash(cube.status)}")
    return lines


@workflow_app.command("run")
def workflow_run(
    ctx: typer.Context,
    workflow: str = typer.Argument(help="Workflow slug."),
    revision: Optional[str] = typer.Option(None, "--revision", help="Branch, tag or commit to run on."),
    workflow_revision: Optional[str] = typer.Option(
        None, "--workflow-revision", help="Revision to read the workflow definition from."
    ),
    repo: Optional[str] = repo_option(),
) -> None:
    """Start a workflow.

    Example::

        src wf run build --revision main
    """
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        result = api.run_workflow(
            org,
            slug,
            RunWorkflowBody(
                workflow_slug=workflow,
                revision=revision,
                workflow_revision=workflow_revision,
            ),
        )

    if get_output().format == OutputFormat.JSON:
        get_output().format_response(result.model_dump(mode="json", exclude_none=True))
        return
    success(f"Workflow '{workflow}' triggered: {value_or_dash(result.trigger_status)}")
    if result.flux_id:
        print_data(f"Flux ID: {result.flux_id}")


@workflow_app.command("list")
def workflow_list(ctx: typer.Context, repo: Optional[str] = repo_option()) -> None:
    """List CI/CD runs of a repository."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        runs = api.list_runs(org, slug)

    rows = [
        [
            value_or_dash(r.slug or r.id),
            value_or_dash(r.status),
            f"{len(r.workflow_runs)} wf",
            relative_time(r.updated_at or r.created_at),
        ]
        for r in runs
    ]
    show_list(runs, ["ID", "STATUS", "WORKFLOWS", "UPDATED"], rows, "No runs found.")


@workflow_app.command("status")
def workflow_status(
    ctx: typer.Context,
    run_id: str = typer.Argument(help="Run ID."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Show a run with the status of every workflow, task and cube."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        run = api.get_run(org, slug, run_id)

    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(run.model_dump(mode="json", exclude_none=True))
        return
    for line in run_tree(run):
        output.print_data(line)
    suggest(f"Logs: src wf logs {run_id} <workflow> <task> <cube>")


@workflow_app.command("logs")
def workflow_logs(
    ctx: typer.Context,
    run_id: str = typer.Argument(help="Run ID."),
    workflow: str = typer.Argument(help="Workflow slug."),
    task: str = typer.Argument(help="Task slug."),
    cube: str = typer.Argument(help="Cube slug."),
    repo: Optional[str] = repo_option(),
) -> None:
    """Print the logs of one cube."""
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        logs = api.get_logs(org, slug, run_id, workflow, task, cube)
    get_output().paged_output(logs)


@workflow_app.command("artifacts")
def workflow_artifacts(
    ctx: typer.Context,
    run_id: str = typer.Argument(help="Run ID."),
    workflow: str = typer.Argument(help="Workflow slug."),
    task: str = typer.Argument(help="Task slug."),
    cube: str = typer.Argument(help="Cube slug."),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="File to write (default: <run>-<workflow>-<task>-<cube>.artifact)."
    ),
    repo: Optional[str] = repo_option(),
) -> None:
    """Download the artifact of one cube to a file."""
    target = output_file or Path(f"{run_id}-{workflow}-{task}-{cube}.artifact")
    with open_api(ctx) as api:
        org, slug = resolve_repo(repo)
        data = api.get_artifact(org, slug, run_id, workflow, task, cube)
        if not data:
            raise SrcError("artifact is empty; nothing was written")
        try:
            target.write_bytes(data)
        except OSError as exc:
            raise SrcError(f"cannot write artifact to {target}: {exc}") from exc
    success(f"Saved {len(data)} bytes to {target}")
