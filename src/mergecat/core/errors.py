"""Exception hierarchy for mergecat.

SkipEvent is the only exception that is not a failure: it ends the
invocation with exit code 0 and is logged at info level. Everything
else derived from MergecatError is an operational failure.
"""

from __future__ import annotations


class MergecatError(Exception):
    """Base exception for all mergecat errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class SkipEvent(MergecatError):
    """Nothing to do for this event or pull request."""

    def __init__(self, message: str) -> None:
        super().__init__("SKIP", message)


class ConfigurationError(MergecatError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class PlatformError(MergecatError):
    """The hosting platform API failed or answered with an error."""

    def __init__(
        self, message: str, status_code: int | None = None
    ) -> None:
        super().__init__("PLATFORM_ERROR", message)
        self.status_code = status_code


class CommandFailed(MergecatError):
    """A version-control command exited with a non-zero status."""

    def __init__(self, command: str, exit_code: int, output: str) -> None:
        super().__init__(
            "COMMAND_FAILED",
            f"command failed with code {exit_code}: {command}",
        )
        self.command = command
        self.exit_code = exit_code
        self.output = output


class MergeFailed(MergecatError):
    """The platform merge did not succeed after all attempts."""

    def __init__(
        self,
        pr_number: int,
        strategy: str,
        attempts: int,
        main_updated: bool = False,
    ) -> None:
        message = (
            f"PR #{pr_number} could not be merged with '{strategy}' "
            f"after {attempts} attempts"
        )
        if main_updated:
            message += "; main was already updated and needs manual repair"
        super().__init__("MERGE_FAILED", message)
        self.pr_number = pr_number
        self.strategy = strategy
        self.attempts = attempts
        self.main_updated = main_updated


class RollupConflict(MergecatError):
    """A release branch could not be merged into the main branch."""

    def __init__(self, pr_number: int, branch: str, output: str) -> None:
        super().__init__(
            "ROLLUP_CONFLICT",
            f"PR #{pr_number}: '{branch}' does not merge cleanly",
        )
        self.pr_number = pr_number
        self.branch = branch
        self.output = output


class TimeoutExceeded(MergecatError):
    """No merge base was found before the time budget ran out."""

    def __init__(self, branch: str, timeout: float) -> None:
        super().__init__(
            "TIMEOUT",
            f"no merge base with '{branch}' found within {timeout:g}s",
        )
        self.branch = branch
        self.timeout = timeout


class NoCommonAncestor(MergecatError):
    """The complete history has no merge base with the branch."""

    def __init__(self, branch: str) -> None:
        super().__init__(
            "NO_COMMON_ANCESTOR",
            f"HEAD and '{branch}' share no history",
        )
        self.branch = branch


__all__ = [
    "CommandFailed",
    "ConfigurationError",
    "MergeFailed",
    "MergecatError",
    "NoCommonAncestor",
    "PlatformError",
    "RollupConflict",
    "SkipEvent",
    "TimeoutExceeded",
]
