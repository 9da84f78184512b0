#!/usr/bin/env python3
"""Mergecat CLI - automatic merging with release-to-main rollup."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from mergecat.command.handle import HandleCommand
from mergecat.command.rollup import RollupCommand
from mergecat.core.config import State


class CliState(State):
    """Merge labelled pull requests once the platform says they can be.

    Pull requests into a release branch are first trial merged into
    the main branch; if that conflicts, the pull request is blocked
    with a failing status check and a comment explaining how to
    reconcile. Otherwise main is updated and the pull request merged.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.policy.main_branch value)
    2. MERGECAT_* environment variables
       (MERGECAT_CONFIG__POLICY__MAIN_BRANCH=value)
    3. GitHub Actions variables (GITHUB_TOKEN, GITHUB_EVENT_NAME, ...)
    4. mergecat.yaml in the current directory, plus --include files
    5. .env file for secrets
    """

    handle: CliSubCommand[HandleCommand]
    rollup: CliSubCommand[RollupCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes and closes every sink.
        with self.config.logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
