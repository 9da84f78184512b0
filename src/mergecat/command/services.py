"""Construct the collaborators a command needs from configuration."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from mergecat.core.config import Config
from mergecat.core.log import Logger
from mergecat.core.runner import Runner
from mergecat.engine.executor import MergeExecutor
from mergecat.engine.prober import MergeabilityProber
from mergecat.engine.rollup import RollupChecker
from mergecat.git.ancestor import CommonAncestorLocator
from mergecat.git.repo import GitRepository
from mergecat.github.auth import Elevator
from mergecat.github.client import GitHubClient
from mergecat.workflow.nodes import Services


def run_name(command: str) -> str:
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{command}"


def identity_env(config: Config) -> dict[str, str]:
    """Fixed author and committer for merges made in the clone."""
    identity = config.git.identity
    return {
        "GIT_AUTHOR_NAME": identity.name,
        "GIT_AUTHOR_EMAIL": identity.email,
        "GIT_COMMITTER_NAME": identity.name,
        "GIT_COMMITTER_EMAIL": identity.email,
    }


def create_repository(config: Config, logger: Logger) -> GitRepository:
    return GitRepository(
        config.git.workdir,
        Runner(logger, env=identity_env(config)),
        logger,
        commands=config.commands.get("git"),
        remote=config.git.remote,
        depth=config.git.fetch_depth,
    )


@contextmanager
def open_services(
    config: Config, logger: Logger
) -> Iterator[tuple[GitHubClient, Services]]:
    """Yield a platform client and the workflow services built on it.

    The client is closed when the block exits.
    """
    github = config.github
    with GitHubClient(
        github.token.get_secret_value(), github.api_url, github.timeout
    ) as client:
        repo = create_repository(config, logger)
        retry = config.retry
        app_key = github.app_key.get_secret_value() if github.app_key else None
        locator = CommonAncestorLocator(repo, logger)
        yield client, Services(
            logger=logger,
            policy=config.policy,
            retry=retry,
            repo=repo,
            prober=MergeabilityProber(
                client, logger, delay=retry.probe_delay
            ),
            executor=MergeExecutor(
                client,
                logger,
                retries=retry.merge_retries,
                delay=retry.merge_delay,
            ),
            rollup=RollupChecker(
                repo,
                locator,
                client,
                config.policy,
                logger,
                timeout=retry.merge_base_timeout,
            ),
            locator=locator,
            elevator=Elevator(
                repo,
                logger,
                app_id=github.app_id,
                app_key=app_key,
                slug=github.repository,
                api_url=github.api_url,
                host=github.host,
                timeout=github.timeout,
            ),
        )


__all__ = ["create_repository", "identity_env", "open_services", "run_name"]
