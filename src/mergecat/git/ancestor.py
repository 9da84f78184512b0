"""Merge-base search over a shallow clone.

In a shallow clone `git merge-base` can answer with a commit that is
only the oldest one fetched rather than the true common ancestor. The
search therefore cross-checks the other side of every merge commit
between the branch and HEAD, and deepens the clone until each of them
also resolves to a merge base.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from mergecat.core.errors import (
    MergecatError,
    NoCommonAncestor,
    TimeoutExceeded,
)
from mergecat.core.log import Logger
from mergecat.git.repo import GitRepository


class CommonAncestorLocator:
    """Deepen a clone until HEAD and a branch have a reliable merge base."""

    def __init__(
        self,
        repo: GitRepository,
        logger: Logger,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repo = repo
        self.logger = logger
        self.clock = clock

    def locate(self, branch: str, timeout: float) -> str:
        """Find the merge base of HEAD and the fetched `branch`.

        Args:
            branch: Branch name; its remote-tracking ref is used
            timeout: Wall-clock budget in seconds

        Returns:
            Commit hash of the merge base

        Raises:
            TimeoutExceeded: The budget ran out while deepening
            NoCommonAncestor: The clone is complete and still has no
                merge base with the branch
        """
        ref = self.repo.remote_ref(branch)
        deadline = self.clock() + timeout
        iteration = 0

        while self.clock() < deadline:
            iteration += 1
            base = self.repo.merge_base("HEAD", ref)
            if base:
                ancestors = self._ancestors(base, ref)
                if ancestors is not None:
                    common = self.repo.merge_base(*ancestors)
                    if not common:
                        raise MergecatError(
                            "NO_COMMON_BASE",
                            f"failed to find common base for {ancestors}",
                        )
                    self.logger.debug(
                        "Found merge base",
                        branch=branch,
                        base=common,
                        iterations=iteration,
                    )
                    return common
            elif not self.repo.is_shallow():
                raise NoCommonAncestor(branch)

            self.logger.debug(
                "History too shallow, deepening",
                branch=branch,
                iteration=iteration,
            )
            self.repo.fetch_deepen()

        raise TimeoutExceeded(branch, timeout)

    def _ancestors(self, base: str, ref: str) -> list[str] | None:
        """Merge bases of `ref` with every merged-in side branch.

        Returns:
            The accumulated set starting with `base`, or None if some
            side branch has no merge base yet
        """
        ancestors = [base]
        for parent in self.repo.merge_parents(ref):
            parent_base = self.repo.merge_base(parent, ref)
            if not parent_base:
                return None
            if parent_base not in ancestors:
                ancestors.append(parent_base)
        return ancestors
