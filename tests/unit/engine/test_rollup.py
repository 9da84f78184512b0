"""Tests for RollupChecker."""

from unittest.mock import MagicMock

import pytest

from mergecat.core.errors import TimeoutExceeded
from mergecat.engine.rollup import RollupChecker
from mergecat.git.ancestor import CommonAncestorLocator
from mergecat.git.repo import GitRepository
from mergecat.github.client import GitHubClient
from mergecat.github.models import CommitStatus, StatusState

CONTEXT = "mergecat: release to master rollup"


class FakeStatuses:
    """Status history kept the way the platform keeps it."""

    def __init__(self, *initial):
        self.history = list(initial)

    def create(self, owner, repo, sha, state, context, description=None):
        status = CommitStatus(
            state=state, context=context, description=description
        )
        self.history.insert(0, status)
        return status

    def list(self, owner, repo, ref):
        return list(self.history)


@pytest.fixture
def repo():
    return MagicMock(spec=GitRepository)


@pytest.fixture
def locator():
    return MagicMock(spec=CommonAncestorLocator)


@pytest.fixture
def statuses():
    return FakeStatuses()


@pytest.fixture
def client(statuses):
    client = MagicMock(spec=GitHubClient)
    client.create_status.side_effect = statuses.create
    client.list_statuses.side_effect = statuses.list
    return client


@pytest.fixture
def checker(repo, locator, client, policy, mock_logger):
    return RollupChecker(
        repo, locator, client, policy, mock_logger, timeout=30.0
    )


def test_clean_head_posts_nothing(checker, repo, client, make_pr):
    repo.can_merge_cleanly.return_value = None

    assert checker.check(make_pr(base="releases/1.0", head="rel")) is None

    repo.can_merge_cleanly.assert_called_once_with("rel")
    client.create_status.assert_not_called()
    client.create_comment.assert_not_called()


def test_conflict_posts_status_and_comment(checker, repo, client, make_pr):
    repo.can_merge_cleanly.return_value = "CONFLICT (content) in app.txt"
    pr = make_pr(number=5, base="releases/1.0", head="releases/1.0")

    output = checker.check(pr)

    assert output == "CONFLICT (content) in app.txt"
    client.create_status.assert_called_once()
    args = client.create_status.call_args
    assert args.args[:4] == ("acme", "app", pr.head.sha, StatusState.FAILURE)
    assert args.kwargs["context"] == CONTEXT
    assert len(args.kwargs["description"]) <= 140

    client.create_comment.assert_called_once()
    owner, name, number, body = client.create_comment.call_args.args
    assert (owner, name, number) == ("acme", "app", 5)
    assert "CONFLICT (content) in app.txt" in body
    assert "git checkout -b fix-rollup-conflict/releases/1.0" in body
    assert "git merge origin/releases/1.0" in body
    assert "`Automerge`" in body


def test_second_consecutive_failure_has_no_comment(
    checker, repo, client, make_pr
):
    repo.can_merge_cleanly.return_value = "CONFLICT"
    pr = make_pr(base="releases/1.0")

    checker.check(pr)
    checker.check(pr)

    assert client.create_status.call_count == 2
    assert client.create_comment.call_count == 1


def test_comment_again_after_success(checker, repo, client, statuses, make_pr):
    statuses.history = [
        CommitStatus(state=StatusState.SUCCESS, context=CONTEXT),
    ]
    repo.can_merge_cleanly.return_value = "CONFLICT"

    checker.check(make_pr(base="releases/1.0"))

    client.create_comment.assert_called_once()


def test_other_contexts_are_ignored(checker, repo, client, statuses, make_pr):
    statuses.history = [
        CommitStatus(state=StatusState.FAILURE, context="ci/build"),
        CommitStatus(state=StatusState.FAILURE, context="ci/lint"),
    ]
    repo.can_merge_cleanly.return_value = "CONFLICT"

    checker.check(make_pr(base="releases/1.0"))

    client.create_comment.assert_called_once()


def test_previous_error_state_suppresses_comment(
    checker, repo, client, statuses, make_pr
):
    statuses.history = [
        CommitStatus(state=StatusState.ERROR, context=CONTEXT),
    ]
    repo.can_merge_cleanly.return_value = "CONFLICT"

    checker.check(make_pr(base="releases/1.0"))

    client.create_status.assert_called_once()
    client.create_comment.assert_not_called()


def test_history_is_deepened_before_the_trial_merge(
    checker, repo, locator, make_pr
):
    calls = MagicMock()
    calls.attach_mock(repo.sync, "sync")
    calls.attach_mock(locator.locate, "locate")
    calls.attach_mock(repo.can_merge_cleanly, "can_merge_cleanly")
    repo.can_merge_cleanly.return_value = None

    checker.check(make_pr(base="releases/1.0", head="releases/1.0"))

    assert [c[0] for c in calls.mock_calls] == [
        "sync",
        "locate",
        "can_merge_cleanly",
    ]
    repo.sync.assert_called_once_with("master", "releases/1.0")
    locator.locate.assert_called_once_with("releases/1.0", 30.0)


def test_no_merge_base_posts_nothing(checker, repo, locator, client, make_pr):
    locator.locate.side_effect = TimeoutExceeded("releases/1.0", 30.0)

    with pytest.raises(TimeoutExceeded):
        checker.check(make_pr(base="releases/1.0", head="releases/1.0"))

    repo.can_merge_cleanly.assert_not_called()
    client.create_status.assert_not_called()
    client.create_comment.assert_not_called()
