"""CLI command modules for mergecat."""

from mergecat.command.handle import HandleCommand
from mergecat.command.rollup import RollupCommand

__all__ = ["HandleCommand", "RollupCommand"]
