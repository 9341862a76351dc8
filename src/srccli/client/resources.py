"""Resource callers for the SourceCraft REST API.

:class:`SourceCraftAPI` has one method per endpoint. Each method builds a
path (URL-quoting every slug), hands it to the
:class:`~srccli.client.transport.Transport` and decodes the JSON body
with :func:`~srccli.client.response.decode_model`. Retries happen inside
the transport and are invisible here.

List methods return the first page only. When the API reports further
pages a notice is written to stderr.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Iterator, Optional, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from srccli.client.response import decode_model
from srccli.client.transport import Transport
from srccli.exceptions import APIError, NotFoundError
from srccli.models import (
    CreateIssueBody,
    CreateMilestoneBody,
    CreatePullRequestBody,
    CreateRepositoryBody,
    ForkRepositoryBody,
    Issue,
    IssueList,
    LogsResponse,
    MergeParameters,
    Milestone,
    MilestoneList,
    PullRequest,
    PullRequestList,
    RepoRole,
    Repository,
    RepositoryList,
    RoleList,
    Run,
    RunList,
    RunWorkflowBody,
    RunWorkflowResponse,
    SetDecisionBody,
    SetDecisionResponse,
    Subject,
    SubjectRole,
    SubjectRolesBody,
    SubjectType,
    UpdateIssueBody,
    UpdatePullRequestBody,
)
from srccli.output import get_output

ModelT = TypeVar("ModelT", bound=BaseModel)


def _seg(value: str) -> str:
    return quote(value, safe="")


@contextmanager
def _not_found_as(message: str) -> Iterator[None]:
    """Re-raise HTTP 404 from the wrapped call as a friendlier NotFoundError."""
    try:
        yield
    except APIError as exc:
        if exc.status_code != 404:
            raise
        raise NotFoundError(
            message,
            status_code=exc.status_code,
            reason=exc.reason,
            path=exc.path,
            api_message=exc.api_message,
            request_id=exc.request_id,
        ) from exc


class SourceCraftAPI:
    """Typed callers for every SourceCraft endpoint used by the CLI.

    Args:
        transport: An entered :class:`Transport`.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    # ------------------------------------------------------------------ #
    # Repositories
    # ------------------------------------------------------------------ #

    def list_repositories(self, org: str) -> list[Repository]:
        path = f"/orgs/{_seg(org)}/repos"
        envelope = self._call("GET", path, RepositoryList, "repo list")
        self._more_pages(envelope.next_page_token, "repositories")
        return envelope.repositories

    def create_repository(self, org: str, body: CreateRepositoryBody) -> Repository:
        path = f"/orgs/{_seg(org)}/repos"
        return self._call("POST", path, Repository, "created repo", body)

    def get_repository(self, org: str, repo: str) -> Repository:
        path = f"/repos/{_seg(org)}/{_seg(repo)}"
        with _not_found_as(
            f"repository '{org}/{repo}' not found or you don't have permission"
        ):
            return self._call("GET", path, Repository, "repository")

    def fork_repository(self, org: str, repo: str, body: ForkRepositoryBody) -> Repository:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/fork"
        return self._call("POST", path, Repository, "forked repo", body)

    # ------------------------------------------------------------------ #
    # Pull requests
    # ------------------------------------------------------------------ #

    def list_pull_requests(self, org: str, repo: str) -> list[PullRequest]:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/pulls"
        envelope = self._call("GET", path, PullRequestList, "PR list")
        self._more_pages(envelope.next_page_token, "pull requests")
        return envelope.pull_requests

    def create_pull_request(
        self, org: str, repo: str, body: CreatePullRequestBody
    ) -> PullRequest:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/pulls"
        return self._call("POST", path, PullRequest, "created PR", body)

    def get_pull_request(self, org: str, repo: str, slug: str) -> PullRequest:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/pulls/{_seg(slug)}"
        with _not_found_as(
            f"pull request '{org}/{repo}#{slug}' not found or you don't have permission"
        ):
            return self._call("GET", path, PullRequest, "PR")

    def update_pull_request(
        self, org: str, repo: str, slug: str, body: UpdatePullRequestBody
    ) -> PullRequest:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/pulls/{_seg(slug)}"
        with _not_found_as(
            f"pull request '{org}/{repo}#{slug}' not found or you don't have permission"
        ):
            return self._call("PATCH", path, PullRequest, "updated PR", body)

    def merge_pull_request(
        self,
        org: str,
        repo: str,
        slug: str,
        params: Optional[MergeParameters] = None,
    ) -> SetDecisionResponse:
        """Approve a pull request through the decision endpoint.

        The endpoint only records a review decision. *params* is accepted
        so callers can pass what the user asked for, but squash, rebase
        and branch deletion are not part of the request.
        """
        path = f"/repos/{_seg(org)}/{_seg(repo)}/pulls/{_seg(slug)}/decision"
        return self._call(
            "POST", path, SetDecisionResponse, "merge/decision response", SetDecisionBody()
        )

    # ------------------------------------------------------------------ #
    # Issues
    # ------------------------------------------------------------------ #

    def list_issues(self, org: str, repo: str) -> list[Issue]:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/issues"
        envelope = self._call("GET", path, IssueList, "issue list")
        self._more_pages(envelope.next_page_token, "issues")
        return envelope.issues

    def create_issue(self, org: str, repo: str, body: CreateIssueBody) -> Issue:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/issues"
        return self._call("POST", path, Issue, "created issue", body)

    def get_issue(self, org: str, repo: str, slug: str) -> Issue:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/issues/{_seg(slug)}"
        with _not_found_as(
            f"issue '{org}/{repo}#{slug}' not found or you don't have permission"
        ):
            return self._call("GET", path, Issue, "issue")

    def update_issue(self, org: str, repo: str, slug: str, body: UpdateIssueBody) -> Issue:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/issues/{_seg(slug)}"
        with _not_found_as(
            f"issue '{org}/{repo}#{slug}' not found or you don't have permission"
        ):
            return self._call("PATCH", path, Issue, "updated issue", body)

    # ------------------------------------------------------------------ #
    # Milestones
    # ------------------------------------------------------------------ #

    def list_milestones(self, org: str, repo: str) -> list[Milestone]:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/milestones"
        envelope = self._call("GET", path, MilestoneList, "milestone list")
        self._more_pages(envelope.next_page_token, "milestones")
        return envelope.items

    def create_milestone(self, org: str, repo: str, body: CreateMilestoneBody) -> Milestone:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/milestones"
        return self._call("POST", path, Milestone, "created milestone", body)

    def get_milestone(self, org: str, repo: str, slug: str) -> Milestone:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/milestones/{_seg(slug)}"
        with _not_found_as(
            f"milestone '{slug}' in '{org}/{repo}' not found or you don't have permission"
        ):
            return self._call("GET", path, Milestone, "milestone")

    # ------------------------------------------------------------------ #
    # Access roles
    # ------------------------------------------------------------------ #

    def list_repo_roles(self, org: str, repo: str) -> list[SubjectRole]:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/roles"
        envelope = self._call("GET", path, RoleList, "repo roles list")
        self._more_pages(envelope.next_page_token, "roles")
        return envelope.subject_roles

    def add_repo_role(self, org: str, repo: str, user_id: str, role: RepoRole) -> None:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/roles"
        self._transport.execute("POST", path, _roles_body(user_id, role))

    def remove_repo_role(self, org: str, repo: str, user_id: str, role: RepoRole) -> None:
        path = f"/repos/{_seg(org)}/{_seg(repo)}/roles/remove"
        self._transport.execute("POST", path, _roles_body(user_id, role))

    # ------------------------------------------------------------------ #
    # CI/CD
    # ------------------------------------------------------------------ #

    def run_workflow(self, org: str, repo: str, body: RunWorkflowBody) -> RunWorkflowResponse:
        path = f"/{_seg(org)}/{_seg(repo)}/cicd/runs"
        return self._call("POST", path, RunWorkflowResponse, "workflow run response", body)

    def list_runs(self, org: str, repo: str) -> list[Run]:
        path = f"/{_seg(org)}/{_seg(repo)}/cicd/runs"
        envelope = self._call("GET", path, RunList, "run list")
        self._more_pages(envelope.next_page_token, "runs")
        return envelope.runs

    def get_run(self, org: str, repo: str, run: str) -> Run:
        path = f"/{_seg(org)}/{_seg(repo)}/cicd/runs/{_seg(run)}"
        with _not_found_as(
            f"run '{run}' in '{org}/{repo}' not found or you don't have permission"
        ):
            return self._call("GET", path, Run, "run status")

    def get_logs(
        self, org: str, repo: str, run: str, workflow: str, task: str, cube: str
    ) -> str:
        """Return the log text of one cube run.

        The API normally wraps logs as ``{"logs": "..."}``. A ``null`` value
        gives ``""``; any other body, including a ``logs`` field that is not
        a string, is returned as text.
        """
        path = "/{}/{}/cicd/logs/{}/{}/{}/{}".format(
            *(_seg(s) for s in (org, repo, run, workflow, task, cube))
        )
        raw = self._transport.execute("GET", path)
        text = raw.decode("utf-8", errors="replace")
        try:
            data = json.loads(text)
        except ValueError:
            return text
        if isinstance(data, dict) and "logs" in data:
            try:
                return LogsResponse.model_validate(data).logs or ""
            except ValidationError:
                pass
        return text

    def get_artifact(
        self, org: str, repo: str, run: str, workflow: str, task: str, cube: str
    ) -> bytes:
        path = "/{}/{}/cicd/artifacts/{}/{}/{}/{}".format(
            *(_seg(s) for s in (org, repo, run, workflow, task, cube))
        )
        return self._transport.download(path)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _call(
        self,
        method: str,
        path: str,
        model: type[ModelT],
        what: str,
        body: Any = None,
    ) -> ModelT:
        raw = self._transport.execute(method, path, body)
        return decode_model(raw, model, method, path, what)

    @staticmethod
    def _more_pages(next_page_token: Optional[str], what: str) -> None:
        if next_page_token:
            get_output().info(f"Showing the first page of {what} only; more are available.")


def _roles_body(user_id: str, role: RepoRole) -> SubjectRolesBody:
    return SubjectRolesBody(
        subject_roles=[
            SubjectRole(
                role=RepoRole(role).value,
                subject=Subject(type=SubjectType.USER.value, id=user_id),
            )
        ]
    )
