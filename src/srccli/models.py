"""Canonical Pydantic models shared across all srccli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- built once at startup and read-only afterwards:
    :class:`RequestConfig`, :class:`ClientConfig`, and the YAML-backed
    :class:`AppConfig`.

**Wire models** -- JSON objects returned by the SourceCraft API:
    repositories, pull requests, issues, milestones, access roles and CI/CD
    runs, plus the list envelopes that wrap them. Every field is optional
    because the API omits empty values; unknown keys are ignored.

**Request bodies** -- JSON objects sent to the API. They are serialised
with ``exclude_none=True`` so that unset optional fields are not sent,
while an explicit empty string (e.g. clearing an assignee) is kept.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.sourcecraft.tech"
"""Base URL of the public SourceCraft API."""

WEB_BASE_URL = "https://sourcecraft.dev"
"""Base URL of the SourceCraft web interface, used for "View:" links."""


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every logical call made by the Transport Core."""

    timeout: float = Field(default=10.0, description="Per-attempt timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    max_retries: int = Field(default=3, ge=1, description="Attempts per logical call")
    base_delay: float = Field(
        default=1.0, ge=0, description="Backoff delay before the second attempt, in seconds"
    )


class ClientConfig(BaseModel):
    """Connection settings for one CLI invocation.

    Constructed once from the resolved token and base URL, then passed to
    :class:`~srccli.client.transport.Transport`. Frozen so that nothing can
    change the endpoint or credentials between calls.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    token: str = Field(repr=False)
    request: RequestConfig = Field(default_factory=RequestConfig)


class AppConfig(BaseModel):
    """User settings persisted in ``config.yaml``.

    Arbitrary extra keys are preserved so that ``src config set`` can store
    values this version does not know about. ``token`` only exists for
    configs written by older releases; it is migrated to the credential
    store on first use.
    """

    model_config = ConfigDict(extra="allow")

    organization: Optional[str] = Field(
        default=None, description="Default organization slug"
    )
    base_url: Optional[str] = Field(default=None, description="Override API base URL")
    token: Optional[str] = Field(
        default=None, repr=False, description="Legacy plain-text token"
    )


# --- Enumerations ---


class Visibility(str, enum.Enum):
    """Repository visibility levels."""

    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class IssuePriority(str, enum.Enum):
    """Issue priority values accepted by the API."""

    TRIVIAL = "trivial"
    MINOR = "minor"
    NORMAL = "normal"
    CRITICAL = "critical"
    BLOCKER = "blocker"


class RepoRole(str, enum.Enum):
    """Roles that can be granted on a repository."""

    VIEWER = "viewer"
    CONTRIBUTOR = "contributor"
    DEVELOPER = "developer"
    MAINTAINER = "maintainer"
    ADMIN = "admin"


class SubjectType(str, enum.Enum):
    """Kinds of subject a role can be granted to."""

    USER = "user"


# --- Wire models: shared ---


class User(BaseModel):
    """Embedded user reference (owner, author, assignee)."""

    id: Optional[str] = None
    slug: Optional[str] = None


class CloneURL(BaseModel):
    https: Optional[str] = None
    ssh: Optional[str] = None


class Language(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None


# --- Wire models: repositories ---


class RepositoryEmbedded(BaseModel):
    """Reduced repository object, used for a fork's ``parent``."""

    id: Optional[str] = None
    slug: Optional[str] = None
    owner: Optional[User] = None
    clone_url: Optional[CloneURL] = None


class Repository(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    default_branch: Optional[str] = None
    is_empty: Optional[bool] = None
    description: Optional[str] = None
    visibility: Optional[str] = None
    clone_url: Optional[CloneURL] = None
    last_updated: Optional[str] = None
    language: Optional[Language] = None
    owner: Optional[User] = None
    parent: Optional[RepositoryEmbedded] = None


class RepositoryList(BaseModel):
    repositories: list[Repository] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Wire models: pull requests ---


class PullRequest(BaseModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    author: Optional[User] = None
    title: Optional[str] = None
    description: Optional[str] = None
    source_branch: Optional[str] = None
    target_branch: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PullRequestList(BaseModel):
    pull_requests: list[PullRequest] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class SetDecisionResponse(BaseModel):
    created_decision: Optional[str] = None
    pull_request_id: Optional[str] = None


# --- Wire models: issues ---


class IssueStatus(BaseModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    name: Optional[str] = None
    status_type: Optional[str] = None


class Label(BaseModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    name: Optional[str] = None
    color: Optional[str] = None


class MilestoneEmbedded(BaseModel):
    id: Optional[str] = None
    slug: Optional[str] = None


class Issue(BaseModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[IssueStatus] = None
    author: Optional[User] = None
    updated_by: Optional[User] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    assignee: Optional[User] = None
    labels: list[Label] = Field(default_factory=list)
    priority: Optional[str] = None
    milestone: Optional[MilestoneEmbedded] = None
    deadline: Optional[str] = None


class IssueList(BaseModel):
    issues: list[Issue] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Wire models: milestones ---


class Milestone(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    deadline: Optional[str] = None
    status: Optional[str] = None
    author: Optional[User] = None
    updated_at: Optional[str] = None


class MilestoneList(BaseModel):
    """List envelope for milestones; the API names the list ``items``."""

    items: list[Milestone] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Wire models: access roles ---


class Subject(BaseModel):
    type: str = SubjectType.USER.value
    id: Optional[str] = None


class SubjectRole(BaseModel):
    """A role granted to a subject.

    ``role`` is kept as a plain string so that listing does not fail on
    roles newer than :class:`RepoRole`; commands validate it on input.
    """

    role: Optional[str] = None
    subject: Optional[Subject] = None


class RoleList(BaseModel):
    subject_roles: list[SubjectRole] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Wire models: CI/CD ---


class CubeRun(BaseModel):
    """The smallest unit of CI/CD execution; logs and artifacts hang off cubes."""

    cube_slug: Optional[str] = None
    status: Optional[str] = None


class TaskRun(BaseModel):
    task_slug: Optional[str] = None
    status: Optional[str] = None
    cube_runs: list[CubeRun] = Field(default_factory=list)


class WorkflowRun(BaseModel):
    workflow_slug: Optional[str] = None
    status: Optional[str] = None
    task_runs: list[TaskRun] = Field(default_factory=list)


class Run(BaseModel):
    """A CI/CD run with its nested workflow, task and cube runs."""

    id: Optional[str] = None
    slug: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    workflow_runs: list[WorkflowRun] = Field(default_factory=list)


class RunList(BaseModel):
    runs: list[Run] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class RunWorkflowResponse(BaseModel):
    flux_id: Optional[str] = None
    trigger_status: Optional[str] = Field(
        default=None, description="already_exists, created, or nothing_to_start"
    )


class LogsResponse(BaseModel):
    logs: Optional[str] = None


# --- Request bodies ---


class CreateRepositoryBody(BaseModel):
    name: str
    slug: str
    description: Optional[str] = None
    visibility: Optional[Visibility] = None


class ForkRepositoryBody(BaseModel):
    org_slug: str
    slug: Optional[str] = None
    default_branch_only: Optional[bool] = None


class CreatePullRequestBody(BaseModel):
    title: str
    source_branch: str
    target_branch: str
    description: Optional[str] = None
    reviewer_ids: Optional[list[str]] = None
    publish: bool = Field(default=True, description="False creates a draft")


class UpdatePullRequestBody(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class MergeParameters(BaseModel):
    """Merge strategy requested on the command line.

    The decision endpoint has no field for these values, so they are only
    used to warn the user; they are never sent.
    """

    squash: bool = False
    rebase: bool = False
    delete_branch: bool = False

    def any_set(self) -> bool:
        return self.squash or self.rebase or self.delete_branch


class SetDecisionBody(BaseModel):
    review_decision: str = "approve"


class CreateIssueBody(BaseModel):
    title: str
    description: Optional[str] = None
    status_slug: Optional[str] = None
    priority: Optional[IssuePriority] = None
    assignee_id: Optional[str] = None
    milestone_id: Optional[str] = None
    label_ids: Optional[list[str]] = None


class UpdateIssueBody(BaseModel):
    """Partial issue update. ``None`` means "leave unchanged"."""

    title: Optional[str] = None
    description: Optional[str] = None
    status_slug: Optional[str] = None
    priority: Optional[str] = None
    assignee_id: Optional[str] = None
    milestone_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class CreateMilestoneBody(BaseModel):
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    deadline: Optional[str] = None


class SubjectRolesBody(BaseModel):
    """Body shared by the add-roles and remove-roles endpoints."""

    subject_roles: list[SubjectRole]


class RunWorkflowBody(BaseModel):
    workflow_slug: str
    revision: Optional[str] = None
    workflow_revision: Optional[str] = None
