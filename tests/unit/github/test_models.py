"""Tests for platform models."""

import pytest

from mergecat.github.models import (
    MergeableState,
    PullRequest,
    PullRequestReviewEvent,
    PushEvent,
)


@pytest.mark.parametrize(
    ("value", "state"),
    [
        ("clean", MergeableState.CLEAN),
        ("has_hooks", MergeableState.HAS_HOOKS),
        ("something_new", MergeableState.UNKNOWN),
    ],
)
def test_mergeable_state_values(value, state):
    assert MergeableState(value) is state


def test_only_clean_and_unstable_are_mergeable():
    assert {s for s in MergeableState if s.mergeable} == {
        MergeableState.CLEAN,
        MergeableState.UNSTABLE,
    }


def test_verdict_unknown_until_computed(make_pr):
    assert make_pr(mergeable=None).verdict is MergeableState.UNKNOWN
    assert make_pr(mergeable=False, mergeable_state="dirty").verdict is (
        MergeableState.DIRTY
    )


def test_pr_addresses_base_repository(make_pr):
    pr = make_pr()

    assert (pr.owner, pr.repo) == ("acme", "app")


def test_head_of_deleted_fork_has_no_repository(make_pr):
    data = make_pr().model_dump(mode="json")
    data["head"]["repo"] = None

    pr = PullRequest.model_validate(data)

    assert pr.head.repo is None
    assert (pr.owner, pr.repo) == ("acme", "app")


def test_push_payload_owner_name():
    event = PushEvent.model_validate({
        "ref": "refs/heads/master",
        "before": "0" * 40,
        "repository": {
            "id": 1,
            "name": "app",
            "owner": {"name": "acme", "email": "a@example.com"},
        },
    })

    assert event.repository.owner.name == "acme"
    assert event.repository.owner.login is None


def test_review_payload(make_pr):
    event = PullRequestReviewEvent.model_validate({
        "action": "submitted",
        "review": {"state": "approved", "body": "LGTM"},
        "pull_request": make_pr().model_dump(mode="json"),
    })

    assert event.review.state == "approved"
    assert event.pull_request.number == 1
