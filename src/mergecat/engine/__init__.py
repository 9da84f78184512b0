"""Merge decision and execution components."""

from mergecat.engine.classifier import Verdict, classify
from mergecat.engine.executor import MergeExecutor
from mergecat.engine.prober import MergeabilityProber
from mergecat.engine.rollup import RollupChecker

__all__ = [
    "MergeExecutor",
    "MergeabilityProber",
    "RollupChecker",
    "Verdict",
    "classify",
]
