"""Settings sources: YAML with includes, and GitHub Actions variables."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_dir
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    YamlConfigSettingsSource,
)

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def deep_merge(base: dict, override: dict) -> dict:
    """Return base with override merged in; override wins."""
    result = base.copy()
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def cli_includes(argv: list[str]) -> list[str]:
    """Collect the values of every --include flag in argv."""
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML source with include: directives and --include support.

    Load order, later files winning on conflicts:
    packaged defaults < user config < ./mergecat.yaml < --include.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        # --include has to be read before pydantic parses the CLI,
        # because the YAML data is needed to build the model.
        includes = cli_includes(sys.argv)

        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike))
                else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = False):  # noqa: ARG002
        result = {}

        files_to_load = [
            DEFAULTS_FILE,
            Path(user_config_dir("mergecat", appauthor=False))
            / "mergecat.yaml",
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        for file_path in files_to_load:
            if file_path.is_file():
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a file, resolving its include: directive first.

        Raises:
            ValueError: If the include chain loops back on itself
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None)
        if includes:
            if isinstance(includes, str):
                includes = [includes]
            for inc in includes:
                inc_data = self._load_file_recursive(
                    self._resolve_path(inc, filepath), visited.copy()
                )
                # The including file overrides what it includes.
                data = self._deep_merge(inc_data, data)

        return data

    def _resolve_path(self, include_path: str, relative_to: Path) -> Path:
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        return deep_merge(base, override)


# Config location -> environment variables, first non-empty wins.
ACTIONS_ENV = {
    ("github", "token"): ("INPUT_GITHUBTOKEN", "GITHUB_TOKEN"),
    ("github", "app_id"): ("INPUT_APPID",),
    ("github", "app_key"): ("INPUT_APPKEY",),
    ("github", "repository"): ("GITHUB_REPOSITORY",),
    ("github", "api_url"): ("GITHUB_API_URL",),
    ("event", "name"): ("GITHUB_EVENT_NAME",),
    ("event", "path"): ("GITHUB_EVENT_PATH",),
    ("git", "workdir"): ("GITHUB_WORKSPACE",),
}


class ActionsEnvSettingsSource(PydanticBaseSettingsSource):
    """Map the variables a GitHub Actions runner sets into config.

    Empty values count as unset: the runner exports INPUT_* for every
    declared input, provided or not.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        environ: dict[str, str] | None = None,
    ):
        super().__init__(settings_cls)
        self.environ = os.environ if environ is None else environ

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        for (section, key), names in ACTIONS_ENV.items():
            value = next(
                (self.environ[n] for n in names if self.environ.get(n)),
                None,
            )
            if value is not None:
                config.setdefault(section, {})[key] = value
        return {"config": config} if config else {}
