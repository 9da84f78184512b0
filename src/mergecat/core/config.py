"""Application state and configuration."""

from __future__ import annotations

from pathlib import Path

import platformdirs
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mergecat.core.base import BaseConfig, BaseState
from mergecat.core.log import Logger
from mergecat.core.sources import (
    ActionsEnvSettingsSource,
    YamlWithIncludesSettingsSource,
)

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GitHubConfig(BaseConfig):
    """Hosting platform access."""

    token: SecretStr = Field(
        description="Access token for API calls (GITHUB_TOKEN)"
    )
    app_id: str | None = Field(
        default=None,
        description=(
            "GitHub App id used to mint an elevated installation token "
            "for pushing to the main branch"
        ),
    )
    app_key: SecretStr | None = Field(
        default=None,
        description="PEM private key of the GitHub App (RS256)",
    )
    repository: str | None = Field(
        default=None,
        description="Repository slug 'owner/name' (GITHUB_REPOSITORY)",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="REST API base URL",
    )
    host: str = Field(
        default="github.com",
        description="Git host used in the elevated remote URL",
    )
    timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )


class EventConfig(BaseConfig):
    """Webhook event handed to this invocation."""

    name: str | None = Field(
        default=None,
        description="Event name (GITHUB_EVENT_NAME)",
    )
    path: Path | None = Field(
        default=None,
        description="Path to the JSON event payload (GITHUB_EVENT_PATH)",
    )


class IdentityConfig(BaseConfig):
    """Committer identity for merges made locally."""

    name: str = Field(default="mergecat")
    email: str = Field(default="noreply@github.com")


class GitConfig(BaseConfig):
    """Local clone used for rollup checks and merges."""

    workdir: Path = Field(
        description=(
            "Path to the pre-existing local clone (GITHUB_WORKSPACE)"
        )
    )
    remote: str = Field(default="origin", description="Remote name")
    fetch_depth: int = Field(
        default=10,
        description="Depth of shallow fetches and of each deepen step",
    )
    identity: IdentityConfig = Field(default_factory=IdentityConfig)


class PolicyConfig(BaseConfig):
    """Which pull requests are merged, and how."""

    main_branch: str = Field(
        default="master",
        description="Main integration branch",
    )
    release_branches: list[str] = Field(
        default_factory=lambda: ["release-ios", "release-web"],
        description="Exact release branch names",
    )
    release_prefix: str = Field(
        default="releases/",
        description="Every branch under this prefix is a release branch",
    )
    automerge_label: str = Field(
        default="Automerge",
        description="Label that opts a pull request into merging",
    )
    fix_branch_prefix: str = Field(
        default="fix-rollup-conflict/",
        description=(
            "Prefix of branches that reconcile a release branch with "
            "main; these are merged, never squashed"
        ),
    )
    status_context: str = Field(
        default="mergecat: release to master rollup",
        description="Context string of the rollup status check",
    )
    max_pr_count: int = Field(
        default=10,
        description="Open pull requests considered per push event",
    )
    pr_actions: list[str] = Field(
        default_factory=lambda: [
            "labeled",
            "unlabeled",
            "synchronize",
            "opened",
            "edited",
            "ready_for_review",
            "reopened",
            "unlocked",
        ],
        description="pull_request actions that trigger processing",
    )

    def is_main(self, branch: str) -> bool:
        return branch == self.main_branch

    def is_release(self, branch: str) -> bool:
        return (
            branch in self.release_branches
            or branch.startswith(self.release_prefix)
        )

    def is_fix_branch(self, branch: str) -> bool:
        return branch.startswith(self.fix_branch_prefix)


class RetryConfig(BaseConfig):
    """Fixed-count, fixed-delay retry budgets."""

    probe_retries: int = Field(
        default=3,
        description="Extra mergeability fetches while the verdict is open",
    )
    probe_delay: float = Field(
        default=2.0,
        description="Seconds between mergeability fetches",
    )
    merge_retries: int = Field(
        default=3,
        description="Extra merge attempts after the first one fails",
    )
    merge_delay: float = Field(
        default=10.0,
        description="Seconds between merge attempts",
    )
    merge_base_timeout: float = Field(
        default=120.0,
        description="Seconds allowed for deepening until a merge base",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default_factory=Logger,
        description="Logger configuration and sinks",
    )
    github: GitHubConfig = Field(description="Hosting platform access")
    event: EventConfig = Field(
        default_factory=EventConfig,
        description="Webhook event to handle",
    )
    git: GitConfig = Field(description="Local clone settings")
    policy: PolicyConfig = Field(
        default_factory=PolicyConfig,
        description="Merge policy",
    )
    retry: RetryConfig = Field(
        default_factory=RetryConfig,
        description="Retry budgets",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("mergecat"))
        ),
        description="Root directory for log files",
    )
    commands: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description=(
            "Command templates organized by tool; the 'git' section "
            "holds one template per version-control operation"
        ),
    )


# ============================================================
# RUNTIME STATE MODELS (mutable while handling an event)
# ============================================================

class HandleState(BaseState):
    """Progress of the event being handled."""

    event_name: str | None = None
    updated: int = Field(
        default=0,
        description="Pull requests that were merged or blocked",
    )
    outcomes: dict[int, str] = Field(
        default_factory=dict,
        description="Terminal outcome per pull request number",
    )


class Runtime(BaseModel):
    """All runtime state, grouped by command."""

    handle: HandleState = Field(default_factory=HandleState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Complete application state: configuration and runtime.

    Sources, highest priority first: init arguments, MERGECAT_*
    environment variables, GitHub Actions environment variables,
    YAML files (with include: support), .env, file secrets.
    """

    config: Config = Field(
        description="Application configuration (from YAML/env/CLI)"
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="mergecat.yaml",
        env_file=".env",
        env_prefix="MERGECAT_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            ActionsEnvSettingsSource(settings_cls),
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


__all__ = [
    "Config",
    "EventConfig",
    "GitConfig",
    "GitHubConfig",
    "PolicyConfig",
    "RetryConfig",
    "State",
]
