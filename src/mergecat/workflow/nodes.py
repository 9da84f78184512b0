"""Per-pull-request state machine.

Probe → Classify → [Elevate → CheckRollup → RollForward] → MergePull

The bracketed steps only run for pull requests into a release branch.
Main is rolled forward before the pull request itself is merged, so a
failed roll-forward leaves the pull request open.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic_graph import BaseNode, End, GraphRunContext

from mergecat.core.config import PolicyConfig, RetryConfig
from mergecat.core.errors import MergeFailed, RollupConflict
from mergecat.core.log import Logger
from mergecat.engine.classifier import Verdict, classify
from mergecat.engine.executor import MergeExecutor
from mergecat.engine.prober import MergeabilityProber
from mergecat.engine.rollup import RollupChecker
from mergecat.git.ancestor import CommonAncestorLocator
from mergecat.git.repo import GitRepository
from mergecat.github.auth import Elevator
from mergecat.github.models import PullRequest


class Outcome(str, Enum):
    SKIPPED = "skipped"
    ROLLUP_BLOCKED = "rollup_blocked"
    MERGED = "merged"

    @property
    def updated(self) -> bool:
        """Whether the pull request was acted upon."""
        return self is not Outcome.SKIPPED


@dataclass
class PullState:
    """Mutable state of one pull request moving through the graph."""

    pr: PullRequest
    verdict: Verdict | None = None
    main_updated: bool = False


@dataclass
class Services:
    """Collaborators shared by every node."""

    logger: Logger
    policy: PolicyConfig
    retry: RetryConfig
    repo: GitRepository
    prober: MergeabilityProber
    executor: MergeExecutor
    rollup: RollupChecker
    locator: CommonAncestorLocator
    elevator: Elevator


Ctx = GraphRunContext[PullState, Services]


@dataclass
class Probe(BaseNode[PullState, Services, Outcome]):
    """Refresh the pull request until its mergeability is known."""

    async def run(self, ctx: Ctx) -> Classify:
        deps = ctx.deps
        ctx.state.pr = deps.prober.probe(
            ctx.state.pr, max_retries=deps.retry.probe_retries
        )
        return Classify()


@dataclass
class Classify(BaseNode[PullState, Services, Outcome]):
    async def run(
        self, ctx: Ctx
    ) -> Elevate | MergePull | End[Outcome]:
        pr = ctx.state.pr
        verdict = classify(pr, ctx.deps.policy)
        ctx.state.verdict = verdict
        if not verdict.eligible:
            ctx.deps.logger.info(
                f"PR #{pr.number} skipped: {verdict.reason}"
            )
            return End(Outcome.SKIPPED)

        ctx.deps.logger.info(
            f"PR #{pr.number} eligible: {verdict.reason}",
            strategy=verdict.strategy.value,
        )
        if verdict.release:
            return Elevate()
        return MergePull()


@dataclass
class Elevate(BaseNode[PullState, Services, Outcome]):
    """Switch to credentials that may push to the main branch."""

    async def run(self, ctx: Ctx) -> CheckRollup:
        ctx.deps.elevator.elevate()
        return CheckRollup()


@dataclass
class CheckRollup(BaseNode[PullState, Services, Outcome]):
    async def run(self, ctx: Ctx) -> RollForward | End[Outcome]:
        if ctx.deps.rollup.check(ctx.state.pr) is not None:
            return End(Outcome.ROLLUP_BLOCKED)
        return RollForward()


@dataclass
class RollForward(BaseNode[PullState, Services, Outcome]):
    """Merge the release head into main locally and push main."""

    async def run(self, ctx: Ctx) -> MergePull:
        deps = ctx.deps
        pr = ctx.state.pr
        main = deps.policy.main_branch
        head = pr.head.ref

        deps.repo.checkout(main)
        deps.repo.fetch(head)
        base = deps.locator.locate(head, deps.retry.merge_base_timeout)
        deps.logger.debug(f"Rolling '{head}' into '{main}'", base=base)

        output = deps.repo.merge(
            head, f"Merge {head} into {main} (#{pr.number})"
        )
        if output is not None:
            raise RollupConflict(pr.number, head, output)

        deps.repo.push(main)
        ctx.state.main_updated = True
        deps.logger.info(f"Pushed '{main}' with '{head}' rolled in")
        return MergePull()


@dataclass
class MergePull(BaseNode[PullState, Services, Outcome]):
    async def run(self, ctx: Ctx) -> End[Outcome]:
        deps = ctx.deps
        pr = ctx.state.pr
        verdict = ctx.state.verdict
        if not deps.executor.try_merge(
            pr, verdict.strategy, verdict.commit_title
        ):
            raise MergeFailed(
                pr.number,
                verdict.strategy.value,
                deps.executor.retries + 1,
                main_updated=ctx.state.main_updated,
            )
        return End(Outcome.MERGED)


__all__ = [
    "CheckRollup",
    "Classify",
    "Elevate",
    "MergePull",
    "Outcome",
    "Probe",
    "PullState",
    "RollForward",
    "Services",
]
