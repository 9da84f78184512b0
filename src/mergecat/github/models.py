"""Hosting platform data: pull requests, statuses and webhook payloads.

Only the fields mergecat reads are declared; everything else in the
platform's JSON is ignored.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Owner(BaseModel):
    login: str | None = None
    # Push payloads carry `name` instead of `login`.
    name: str | None = None


class Repository(BaseModel):
    """Addresses every platform API call."""

    id: int
    name: str
    full_name: str | None = None
    owner: Owner


class Ref(BaseModel):
    """Head or base of a pull request."""

    ref: str
    sha: str
    # null when the head comes from a deleted fork
    repo: Repository | None = None


class Label(BaseModel):
    name: str


class MergeableState(str, Enum):
    """Mergeability as computed by the platform."""

    CLEAN = "clean"
    UNSTABLE = "unstable"
    DIRTY = "dirty"
    BLOCKED = "blocked"
    BEHIND = "behind"
    DRAFT = "draft"
    HAS_HOOKS = "has_hooks"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN

    @property
    def mergeable(self) -> bool:
        return self in (MergeableState.CLEAN, MergeableState.UNSTABLE)


class MergeMethod(str, Enum):
    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


class PullRequest(BaseModel):
    number: int
    title: str = ""
    head: Ref
    base: Ref
    labels: list[Label] = Field(default_factory=list)
    mergeable: bool | None = None
    mergeable_state: MergeableState = MergeableState.UNKNOWN

    @property
    def verdict(self) -> MergeableState:
        """The mergeable state, or UNKNOWN while it is still computed."""
        if self.mergeable is None:
            return MergeableState.UNKNOWN
        return self.mergeable_state

    @property
    def label_names(self) -> frozenset[str]:
        return frozenset(label.name for label in self.labels)

    @property
    def owner(self) -> str:
        """Owner login of the repository the pull request targets."""
        return self.base.repo.owner.login or ""

    @property
    def repo(self) -> str:
        return self.base.repo.name


class StatusState(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


class CommitStatus(BaseModel):
    """A status check posted against a commit."""

    state: StatusState
    context: str = "default"
    description: str | None = None
    target_url: str | None = None


# Webhook payloads


class Review(BaseModel):
    state: str


class PullRequestEvent(BaseModel):
    action: str
    pull_request: PullRequest


class PullRequestReviewEvent(BaseModel):
    action: str
    review: Review
    pull_request: PullRequest


class PushEvent(BaseModel):
    ref: str
    repository: Repository


__all__ = [
    "CommitStatus",
    "Label",
    "MergeMethod",
    "MergeableState",
    "Owner",
    "PullRequest",
    "PullRequestEvent",
    "PullRequestReviewEvent",
    "PushEvent",
    "Ref",
    "Repository",
    "StatusState",
]
