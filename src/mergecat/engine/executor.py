"""Platform-side merge of a pull request."""

from __future__ import annotations

import time
from collections.abc import Callable

from mergecat.core.errors import PlatformError
from mergecat.core.log import Logger
from mergecat.core.retry import retry
from mergecat.github.client import GitHubClient
from mergecat.github.models import MergeMethod, PullRequest


class MergeExecutor:
    """Merges pull requests through the API with a fixed retry budget.

    A failed attempt is logged and retried, never raised; only the
    overall boolean tells the caller whether the merge happened.
    """

    def __init__(
        self,
        client: GitHubClient,
        logger: Logger,
        retries: int = 3,
        delay: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.logger = logger
        self.retries = retries
        self.delay = delay
        self.sleep = sleep

    def try_merge(
        self,
        pr: PullRequest,
        method: MergeMethod,
        commit_title: str | None = None,
    ) -> bool:
        """Merge `pr` pinned to its current head commit.

        Returns:
            True once an attempt succeeded, False after the initial
            attempt and every retry failed
        """

        def attempt() -> bool:
            try:
                response = self.client.merge_pull(
                    pr.owner,
                    pr.repo,
                    pr.number,
                    sha=pr.head.sha,
                    method=method,
                    commit_title=commit_title,
                )
            except PlatformError as e:
                self.logger.info(f"Failed to merge PR #{pr.number}: {e}")
                return False
            if response.status_code == 200:
                return True
            self.logger.info(
                f"Failed to merge PR #{pr.number}",
                status=response.status_code,
            )
            return False

        def failed() -> None:
            self.logger.error(
                f"Giving up on merging PR #{pr.number}",
                method=method.value,
                attempts=self.retries + 1,
            )

        merged = retry(
            self.retries,
            self.delay,
            attempt,
            self.logger,
            on_failed=failed,
            sleep=self.sleep,
        )
        if merged:
            self.logger.info(f"Merged PR #{pr.number}", method=method.value)
        return merged


__all__ = ["MergeExecutor"]
