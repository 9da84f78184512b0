"""Eligibility rules for automatic merging."""

from __future__ import annotations

from dataclasses import dataclass

from mergecat.core.config import PolicyConfig
from mergecat.github.models import MergeMethod, PullRequest


@dataclass(frozen=True)
class Verdict:
    """Outcome of classify().

    `strategy` and `commit_title` are only meaningful when `eligible`;
    `reason` explains a skip.
    """

    eligible: bool
    strategy: MergeMethod | None = None
    reason: str = ""
    commit_title: str | None = None
    release: bool = False


def skip(reason: str) -> Verdict:
    return Verdict(eligible=False, reason=reason)


def classify(pr: PullRequest, policy: PolicyConfig) -> Verdict:
    """Decide whether and how a pull request is merged.

    Rules are checked in order: mergeable verdict, automerge label,
    target branch. The function has no side effects.
    """
    verdict = pr.verdict
    if not verdict.mergeable:
        return skip(f"mergeability blocked: {verdict.value}")

    if policy.automerge_label not in pr.label_names:
        return skip(f"no {policy.automerge_label} label")

    base = pr.base.ref
    if policy.is_main(base):
        if policy.is_fix_branch(pr.head.ref):
            return Verdict(
                eligible=True,
                strategy=MergeMethod.MERGE,
                reason="rollup fix into main",
            )
        return Verdict(
            eligible=True,
            strategy=MergeMethod.SQUASH,
            reason="feature into main",
            commit_title=f"{pr.title} (#{pr.number})",
        )

    if policy.is_release(base):
        return Verdict(
            eligible=True,
            strategy=MergeMethod.MERGE,
            reason="into release branch",
            release=True,
        )

    return skip(f"not merging into {policy.main_branch} or a release")


__all__ = ["Verdict", "classify", "skip"]
