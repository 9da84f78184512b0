"""Release-to-main rollup conflict check.

Anything merged into a release branch must also land on the main
branch. Before a release pull request is merged, the clone is deepened
until main and the head share a merge base, then the head is trial
merged into main; if that conflicts, the pull request is blocked with
a failing status and the author gets instructions for a fix branch.
"""

from __future__ import annotations

from mergecat.core.config import PolicyConfig
from mergecat.core.log import Logger
from mergecat.git.ancestor import CommonAncestorLocator
from mergecat.git.repo import GitRepository
from mergecat.github.client import GitHubClient
from mergecat.github.models import PullRequest, StatusState

STATUS_DESCRIPTION = "Cannot merge into `{main}`; see the PR comments"

COMMENT_TEMPLATE = """\
`{head}` cannot be merged into `{main}` without conflicts, so this \
pull request will not be merged automatically.

Git output:

```
{output}
```

To reconcile, merge the release branch into `{main}` through a fix \
branch:

```sh
git fetch origin
git checkout -b {fix_branch} origin/{main}
git merge origin/{head}
# resolve the conflicts and commit
git push origin {fix_branch}
```

Then open a pull request from `{fix_branch}` into `{main}` with the \
`{label}` label. Once it is merged, push to this pull request again to \
re-run the check.
"""


class RollupChecker:
    """Blocks release pull requests that would not roll into main."""

    def __init__(
        self,
        repo: GitRepository,
        locator: CommonAncestorLocator,
        client: GitHubClient,
        policy: PolicyConfig,
        logger: Logger,
        timeout: float = 120.0,
    ):
        self.repo = repo
        self.locator = locator
        self.timeout = timeout
        self.client = client
        self.policy = policy
        self.logger = logger

    def check(self, pr: PullRequest) -> str | None:
        """Trial-merge the head of `pr` into the main branch.

        On conflict, posts a failure status on the head commit every
        time, and a comment unless the previous status of this check
        already failed.

        Returns:
            None if the head merges cleanly, otherwise the git output

        Raises:
            TimeoutExceeded: No merge base was found in time
            CommandFailed: git failed for a reason other than conflicts
        """
        main = self.policy.main_branch
        head = pr.head.ref
        self.repo.sync(main, head)
        self.locator.locate(head, self.timeout)
        output = self.repo.can_merge_cleanly(head)
        if output is None:
            self.logger.info(
                f"PR #{pr.number}: '{head}' merges cleanly into '{main}'"
            )
            return None

        self.logger.warn(
            f"PR #{pr.number}: '{head}' conflicts with '{main}'",
            output=output,
        )
        self.client.create_status(
            pr.owner,
            pr.repo,
            pr.head.sha,
            StatusState.FAILURE,
            context=self.policy.status_context,
            description=STATUS_DESCRIPTION.format(main=main),
        )
        if self.needs_comment(pr):
            self.client.create_comment(
                pr.owner,
                pr.repo,
                pr.number,
                self.comment(pr, output),
            )
        else:
            self.logger.info(
                f"PR #{pr.number}: conflict already reported, no comment"
            )
        return output

    def needs_comment(self, pr: PullRequest) -> bool:
        """False when the status before the one just posted also failed."""
        statuses = [
            s
            for s in self.client.list_statuses(pr.owner, pr.repo, pr.head.sha)
            if s.context == self.policy.status_context
        ]
        if len(statuses) > 1:
            return statuses[1].state not in (
                StatusState.FAILURE,
                StatusState.ERROR,
            )
        return True

    def comment(self, pr: PullRequest, output: str) -> str:
        head = pr.head.ref
        return COMMENT_TEMPLATE.format(
            head=head,
            main=self.policy.main_branch,
            output=output.strip(),
            fix_branch=f"{self.policy.fix_branch_prefix}{head}",
            label=self.policy.automerge_label,
        )


__all__ = ["COMMENT_TEMPLATE", "RollupChecker"]
