"""Pytest configuration and fixtures for mergecat tests."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mergecat.core.config import PolicyConfig
from mergecat.core.log import ConsoleSink, FileSink, Logger, LogfireSink
from mergecat.github.models import PullRequest

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@example.com",
}


@pytest.fixture
def logger(tmp_path):
    """Logger with every sink disabled.

    Components log through logfire regardless; nothing is printed.
    """
    logger = Logger(
        level="trace",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=False),
        logfire=LogfireSink(enabled=False),
    )
    logger.setup(log_root=tmp_path / "logs", run_name="test")
    with logger:
        yield logger


@pytest.fixture
def mock_logger():
    """Stand-in logger for asserting on what was logged."""
    return MagicMock(spec=Logger)


@pytest.fixture
def policy():
    return PolicyConfig()


@pytest.fixture
def make_pr():
    """Factory for pull requests in the shape the platform returns."""

    def _make_pr(
        number=1,
        base="master",
        head="feature",
        labels=("Automerge",),
        mergeable=True,
        mergeable_state="clean",
        title="Add feature",
        sha=None,
    ):
        repo = {
            "id": 42,
            "name": "app",
            "full_name": "acme/app",
            "owner": {"login": "acme"},
        }
        return PullRequest.model_validate({
            "number": number,
            "title": title,
            "head": {
                "ref": head,
                "sha": sha or f"{number:040x}",
                "repo": repo,
            },
            "base": {"ref": base, "sha": "b" * 40, "repo": repo},
            "labels": [{"name": name} for name in labels],
            "mergeable": mergeable,
            "mergeable_state": mergeable_state,
        })

    return _make_pr


@pytest.fixture
def test_config(tmp_path, monkeypatch):
    """Configuration loaded through every settings source.

    sys.argv is replaced so pytest's own arguments are not read as
    --include flags.
    """
    from mergecat.core.config import State

    monkeypatch.setattr(sys, "argv", ["mergecat"])
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("GITHUB_WORKSPACE", str(tmp_path))
    return State().config


# Real git repositories

def run_git(cwd, *args):
    """Run git in `cwd` and return its stripped standard output."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env={**_base_env(), **GIT_IDENTITY},
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def _base_env():
    env = dict(os.environ)
    env["GIT_CONFIG_GLOBAL"] = "/dev/null"
    env["GIT_CONFIG_NOSYSTEM"] = "1"
    return env


def commit_file(cwd, name, content, message=None):
    (Path(cwd) / name).write_text(content)
    run_git(cwd, "add", name)
    run_git(cwd, "commit", "--quiet", "-m", message or f"Update {name}")
    return run_git(cwd, "rev-parse", "HEAD")


@pytest.fixture
def git():
    return run_git


@pytest.fixture
def commit():
    return commit_file


@pytest.fixture
def origin(tmp_path):
    """A bare origin with `master` and a `releases/1.0` branch.

    Returns the path of a seed working copy that pushes to it; the
    bare repository is next to it as origin.git.
    """
    bare = tmp_path / "origin.git"
    seed = tmp_path / "seed"
    run_git(tmp_path, "init", "--quiet", "--bare", "-b", "master", str(bare))
    run_git(tmp_path, "clone", "--quiet", str(bare), str(seed))
    run_git(seed, "checkout", "--quiet", "-B", "master")
    commit_file(seed, "app.txt", "one\n", "Initial commit")
    commit_file(seed, "notes.txt", "notes\n")
    run_git(seed, "push", "--quiet", "origin", "master")
    run_git(seed, "checkout", "--quiet", "-b", "releases/1.0")
    run_git(seed, "push", "--quiet", "origin", "releases/1.0")
    run_git(seed, "checkout", "--quiet", "master")
    return seed


@pytest.fixture
def workdir(tmp_path, origin):
    """A clone of origin with `master` checked out."""
    clone = tmp_path / "work"
    run_git(
        tmp_path, "clone", "--quiet", f"file://{tmp_path / 'origin.git'}",
        str(clone),
    )
    return clone


@pytest.fixture
def git_runner(logger, monkeypatch):
    """Runner that executes git isolated from the user's git config."""
    from mergecat.core.runner import Runner

    monkeypatch.setenv("GIT_CONFIG_GLOBAL", "/dev/null")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    return Runner(logger, env=GIT_IDENTITY)
