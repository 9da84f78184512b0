"""Route one webhook event to the per-pull-request workflow."""

from __future__ import annotations

from typing import Any

from mergecat.core.errors import ConfigurationError, MergecatError, SkipEvent
from mergecat.github.client import GitHubClient
from mergecat.github.models import (
    PullRequest,
    PullRequestEvent,
    PullRequestReviewEvent,
    PushEvent,
)
from mergecat.workflow.graph import process_pull
from mergecat.workflow.nodes import Outcome, Services

VALID_EVENTS = ("push", "status", "pull_request", "pull_request_review")

BRANCH_REF_PREFIX = "refs/heads/"


class EventDispatcher:
    """Turns an event into zero or more pull request runs.

    Every handler either returns the number of updated pull requests
    or raises SkipEvent when nothing was done.
    """

    def __init__(self, client: GitHubClient, services: Services):
        self.client = client
        self.services = services
        self.logger = services.logger
        self.policy = services.policy
        self.outcomes: dict[int, Outcome] = {}

    async def dispatch(self, name: str, payload: dict[str, Any]) -> int:
        """Handle event `name` with its JSON payload.

        Raises:
            ConfigurationError: If `name` is not a supported event
            SkipEvent: If the event leads to no update
        """
        if name not in VALID_EVENTS:
            raise ConfigurationError(f"invalid event type: {name}")
        self.logger.info(f"Event name: {name}")
        self.logger.trace("Event data", payload=payload)

        handler = getattr(self, f"on_{name}")
        return await handler(payload)

    async def on_pull_request(self, payload: dict[str, Any]) -> int:
        event = PullRequestEvent.model_validate(payload)
        if event.action not in self.policy.pr_actions:
            raise SkipEvent(f"PR action ignored: {event.action}")
        return await self._single(event.pull_request)

    async def on_pull_request_review(self, payload: dict[str, Any]) -> int:
        event = PullRequestReviewEvent.model_validate(payload)
        if event.action != "submitted":
            raise SkipEvent(
                f"Ignoring pull_request_review: {event.action} -> "
                f"{event.review.state}"
            )
        if event.review.state.lower() != "approved":
            raise SkipEvent(
                f"Review state is not approved: {event.review.state}"
            )
        return await self._single(event.pull_request)

    async def on_status(self, payload: dict[str, Any]) -> int:
        raise SkipEvent("status events need no action")

    async def on_push(self, payload: dict[str, Any]) -> int:
        """Process the open pull requests based on the pushed branch.

        Pull requests run one after another. A failure on one is
        logged and does not stop the rest.
        """
        event = PushEvent.model_validate(payload)
        if not event.ref.startswith(BRANCH_REF_PREFIX):
            raise SkipEvent(f"Push '{event.ref}' does not reference a branch")
        branch = event.ref[len(BRANCH_REF_PREFIX):]
        self.logger.info(f"Push to branch '{branch}'")

        owner = event.repository.owner.name or event.repository.owner.login
        if not owner:
            raise SkipEvent(
                f"Push '{event.ref}' repository does not have an owner"
            )

        pulls = self.client.list_pulls(
            owner,
            event.repository.name,
            base=branch,
            per_page=self.policy.max_pr_count,
        )
        if not pulls:
            raise SkipEvent(f"No open PRs for {branch}")
        self.logger.info(f"Open PRs: {len(pulls)}")

        updated = 0
        for pr in pulls:
            try:
                if await self._process(pr):
                    updated += 1
            except MergecatError as e:
                self.logger.error(
                    f"PR #{pr.number} failed: {e.message}", code=e.code
                )
            except Exception as e:
                self.logger.exception(f"PR #{pr.number} failed", error=str(e))

        if not updated:
            raise SkipEvent(f"No PRs based on {branch} have been updated")
        plural = "" if updated == 1 else "s"
        self.logger.info(
            f"{updated} PR{plural} based on {branch} have been updated"
        )
        return updated

    async def _single(self, pr: PullRequest) -> int:
        if not await self._process(pr):
            raise SkipEvent(f"PR #{pr.number} skipped")
        return 1

    async def _process(self, pr: PullRequest) -> bool:
        outcome = await process_pull(pr, self.services)
        self.outcomes[pr.number] = outcome
        return outcome.updated


__all__ = ["BRANCH_REF_PREFIX", "EventDispatcher", "VALID_EVENTS"]
