"""Wait for the platform's mergeability verdict."""

from __future__ import annotations

import time
from collections.abc import Callable

from mergecat.core.log import Logger
from mergecat.github.client import GitHubClient
from mergecat.github.models import MergeableState, PullRequest


class MergeabilityProber:
    """Re-reads a pull request until its mergeable state is clean.

    The platform computes mergeability asynchronously after the event
    that triggered us, so the first read is often `unknown`.
    """

    def __init__(
        self,
        client: GitHubClient,
        logger: Logger,
        delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.logger = logger
        self.delay = delay
        self.sleep = sleep

    def probe(self, pr: PullRequest, max_retries: int = 3) -> PullRequest:
        """Fetch `pr` fresh, retrying while the verdict is not clean.

        Returns:
            The last pull request read; callers treat any state other
            than clean/unstable as a skip
        """
        retries = 0
        while True:
            current = self.client.get_pull(pr.owner, pr.repo, pr.number)
            verdict = current.verdict
            if verdict is MergeableState.CLEAN or retries >= max_retries:
                return current

            retries += 1
            self.logger.info(
                f"Retrying mergeability check of PR #{pr.number} "
                f"({retries}/{max_retries})",
                mergeable=current.mergeable,
                state=current.mergeable_state.value,
            )
            self.sleep(self.delay)


__all__ = ["MergeabilityProber"]
