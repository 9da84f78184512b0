"""Version-control primitives over a local clone.

Each method maps to one command template from the `commands.git`
configuration section. A non-zero exit raises CommandFailed, except
where an exit code has a defined meaning (merge 1 = conflicts,
merge-base 1 = no common ancestor, merge --abort 128 = nothing to
abort).
"""

from __future__ import annotations

import re
import shlex
from functools import cache
from pathlib import Path

import yaml

from mergecat.core.errors import CommandFailed
from mergecat.core.log import Logger
from mergecat.core.runner import Runner
from mergecat.core.sources import DEFAULTS_FILE

# merge-base exits 1 when the two commits share no history.
NO_COMMON_ANCESTOR = 1
# merge exits 1 when it stops on conflicts; fatal errors exit 128.
MERGE_CONFLICT = 1
# merge --abort exits 128 when MERGE_HEAD is missing.
NO_MERGE_IN_PROGRESS = 128
# config --unset exits 5 when the key is not set.
CONFIG_KEY_NOT_SET = 5

_CREDENTIALS = re.compile(r"(https?://)[^@/\s]+@")


@cache
def default_commands() -> dict[str, str]:
    """Git command templates shipped in defaults/default.yaml."""
    with open(DEFAULTS_FILE) as f:
        data = yaml.safe_load(f)
    return dict(data["config"]["commands"]["git"])


def redact(text: str) -> str:
    """Hide credentials embedded in URLs."""
    return _CREDENTIALS.sub(r"\1***@", text)


class GitRepository:
    """A working directory plus the commands run against it.

    Commands run strictly one at a time; nothing in mergecat calls
    into the same GitRepository concurrently.
    """

    def __init__(
        self,
        workdir: Path,
        runner: Runner,
        logger: Logger,
        commands: dict[str, str] | None = None,
        remote: str = "origin",
        depth: int = 10,
    ):
        self.workdir = Path(workdir)
        self.runner = runner
        self.logger = logger
        self.commands = {**default_commands(), **(commands or {})}
        self.remote = remote
        self.depth = depth

    def remote_ref(self, branch: str) -> str:
        return f"refs/remotes/{self.remote}/{branch}"

    def _run(
        self, name: str, ok: tuple[int, ...] = (0,), **args
    ) -> tuple[int, str]:
        template = self.commands[name]
        command = template.format(
            **{k: shlex.quote(str(v)) for k, v in args.items()}
        )
        display = redact(command)
        result = self.runner.execute(
            command, cwd=self.workdir, check=False, display=display
        )
        output = (result.stdout + result.stderr).strip()
        if result.exited not in ok:
            raise CommandFailed(display, result.exited, redact(output))
        if result.exited:
            return result.exited, redact(output)
        return result.exited, result.stdout.strip()

    def git(self, name: str, **args) -> str:
        """Run the named command; return its standard output."""
        return self._run(name, **args)[1]

    def checkout(self, branch: str) -> None:
        self.git("checkout", branch=branch)

    def pull(self, branch: str) -> None:
        self.git("pull", remote=self.remote, branch=branch)

    def fetch(self, branch: str) -> None:
        """Shallow-fetch a branch into its remote-tracking ref."""
        self.git(
            "fetch",
            depth=self.depth,
            remote=self.remote,
            refspec=f"{branch}:{self.remote_ref(branch)}",
        )

    def fetch_deepen(self) -> None:
        self.git("fetch_deepen", depth=self.depth, remote=self.remote)

    def is_shallow(self) -> bool:
        return self.git("is_shallow") == "true"

    def abort_merge(self) -> None:
        """Abort an in-progress merge; no merge in progress is fine."""
        self._run("merge_abort", ok=(0, NO_MERGE_IN_PROGRESS))

    def sync(self, base: str, branch: str) -> None:
        """Check out an up-to-date `base` and fetch `branch` next to it."""
        self.checkout(base)
        self.pull(base)
        self.fetch(branch)

    def _merge(self, name: str, **args) -> str | None:
        code, output = self._run(name, ok=(0, MERGE_CONFLICT), **args)
        if code == MERGE_CONFLICT:
            self.abort_merge()
            return output
        return None

    def can_merge_cleanly(self, branch: str) -> str | None:
        """Trial-merge the fetched `branch` into the current branch.

        The trial merge is always undone. History must already reach
        a merge base, or git refuses the merge outright.

        Returns:
            None if the merge is clean, otherwise the conflict output

        Raises:
            CommandFailed: git failed for a reason other than conflicts
        """
        output = self._merge("merge_no_commit", ref=self.remote_ref(branch))
        if output is None:
            self.abort_merge()
        return output

    def merge(self, branch: str, message: str) -> str | None:
        """Merge the fetched `branch` into the current branch.

        Returns:
            None on success, otherwise the conflict output (the failed
            merge is aborted)

        Raises:
            CommandFailed: git failed for a reason other than conflicts
        """
        return self._merge(
            "merge", message=message, ref=self.remote_ref(branch)
        )

    def merge_base(self, *refs: str) -> str | None:
        """Common ancestor of all refs, reduced pairwise left to right.

        Returns:
            The commit hash, or None when some pair shares no history

        Raises:
            ValueError: If no refs are given
        """
        if not refs:
            raise ValueError("merge_base needs at least one ref")
        if len(refs) == 1:
            return refs[0]

        base = refs[0]
        for ref in refs[1:]:
            code, out = self._run(
                "merge_base",
                ok=(0, NO_COMMON_ANCESTOR),
                first=base,
                second=ref,
            )
            if code == NO_COMMON_ANCESTOR:
                return None
            base = out
        return base

    def merge_parents(self, ref: str) -> list[str]:
        """Non-first parents of every merge commit in ref..HEAD."""
        out = self.git("rev_list_parents", range=f"{ref}..HEAD")
        parents = []
        for line in out.splitlines():
            commit_and_parents = line.split()
            if len(commit_and_parents) > 2:
                parents.extend(commit_and_parents[2:])
        return parents

    def set_remote(self, url: str) -> None:
        self.git("remote_set_url", remote=self.remote, url=url)

    def unset_config(self, key: str) -> bool:
        """Remove a local config key.

        Returns:
            False if the key was not set
        """
        code, _ = self._run(
            "config_unset", ok=(0, CONFIG_KEY_NOT_SET), key=key
        )
        return code == 0

    def push(self, branch: str, force: bool = False) -> None:
        self.git(
            "push_force" if force else "push",
            remote=self.remote,
            branch=branch,
        )
