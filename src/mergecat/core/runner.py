"""Command execution using invoke."""

from __future__ import annotations

from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from mergecat.core.log import Logger


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    Output is always captured, never echoed. Every command line is
    logged at debug level through the injected logger; callers that
    pass credentials on the command line supply a redacted `display`
    string instead.
    """

    def __init__(self, logger: Logger, env: dict[str, str] | None = None):
        super().__init__()
        # _set bypasses invoke's attribute-to-config proxying.
        self._set(logger=logger, base_env=dict(env or {}))

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
        display: str | None = None,
    ) -> Result:
        """Execute a command.

        Args:
            command: Command line to execute
            cwd: Working directory for the command
            timeout: Maximum execution time in seconds
            check: If True, raise on non-zero exit code
            env: Extra environment variables (on top of os.environ
                and the runner's base environment)
            display: Text to log instead of the command line

        Returns:
            invoke.Result with stdout, stderr and exited

        Raises:
            invoke.UnexpectedExit: If check=True and the command
                returns non-zero
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
            "env": {**self.base_env, **(env or {})},
        }
        if timeout:
            kwargs["timeout"] = timeout

        self.logger.debug(
            "Executing",
            command=display or command,
            cwd=str(cwd) if cwd else None,
        )

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            # Reported like any other failure, with exit code -1.
            result = e.result
            result.exited = -1

        for line in result.stderr.splitlines():
            self.logger.trace("stderr: {line}", line=line.rstrip())

        return result
