"""
Configuration model for dep-updater.

The CLI loads a Config instance from a JSON file and passes it down
into the orchestration logic, so nothing below the CLI reads the
configuration file or relies on global state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError, FileAccessError

DEFAULT_CONFIG_FILE = "dependencies.json"


@dataclass
class RepositorySettings:
    """
    Remote repository settings shared by every project.

    Credentials are only used when both username and password are set.
    """

    url: str = ""
    username: str = ""
    password: str = ""

    def has_credentials(self) -> bool:
        return bool(self.username.strip()) and bool(self.password.strip())


@dataclass
class Project:
    name: str
    enabled: bool = False
    push: bool = False
    # Accepted for compatibility with existing configuration files; no
    # pipeline step reads it.
    clone: bool = False


@dataclass
class Config:
    """
    Top-level configuration for a dep-updater run.
    """

    workspace_home: str = ""
    repository: RepositorySettings = field(default_factory=RepositorySettings)
    projects: List[Project] = field(default_factory=list)
    working_branch: str = ""
    create_from: str = ""
    libraries: Dict[str, str] = field(default_factory=dict)

    def project_path(self, project: Project) -> Path:
        """
        Return the directory holding the given project's clone.
        """

        return Path(self.workspace_home) / project.name

    def enabled_projects(self) -> List[Project]:
        return [p for p in self.projects if p.enabled]


def load_config(path: str) -> Config:
    """
    Load and validate a Config from a JSON file.

    Missing optional fields fall back to their defaults; fields of the
    wrong type raise ConfigurationError.
    """

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"error reading file '{path}': {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"error decoding configuration file '{path}': {exc}") from exc

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"error parsing configuration file '{path}': {exc}") from exc

    return parse_config(raw)


def parse_config(raw: Any) -> Config:
    """
    Build a Config from an already decoded JSON document.
    """

    if not isinstance(raw, dict):
        raise ConfigurationError("configuration must be a JSON object")

    repository = _parse_repository(raw.get("repository"))

    raw_projects = raw.get("projects", [])
    if raw_projects is None:
        raw_projects = []
    if not isinstance(raw_projects, list):
        raise ConfigurationError("field 'projects' must be a list")
    projects = [_parse_project(item, i) for i, item in enumerate(raw_projects, start=1)]

    raw_libraries = raw.get("libraries", {})
    if raw_libraries is None:
        raw_libraries = {}
    if not isinstance(raw_libraries, dict):
        raise ConfigurationError("field 'libraries' must be an object of name -> version")
    libraries: Dict[str, str] = {}
    for name, version in raw_libraries.items():
        if not name.strip():
            raise ConfigurationError("library name must be a non-empty string")
        if not isinstance(version, str):
            raise ConfigurationError(f"version of library '{name}' must be a string")
        libraries[name] = version

    return Config(
        workspace_home=_optional_str(raw, "workspace_home"),
        repository=repository,
        projects=projects,
        working_branch=_optional_str(raw, "working_branch"),
        create_from=_optional_str(raw, "create_from"),
        libraries=libraries,
    )


def validate_config(config: Config, require_libraries: bool = False) -> None:
    """
    Check the configuration before any project is touched.

    The update command requires a non-empty library mapping; the push
    command does not.
    """

    if not config.projects:
        raise ConfigurationError("project names to update, not configured")
    if not config.working_branch.strip():
        raise ConfigurationError("field 'working_branch' is not configured")
    if require_libraries and not config.libraries:
        raise ConfigurationError("libraries configuration does not exist")


def _parse_repository(raw: Optional[Any]) -> RepositorySettings:
    if raw is None:
        return RepositorySettings()
    if not isinstance(raw, dict):
        raise ConfigurationError("field 'repository' must be an object")
    return RepositorySettings(
        url=_optional_str(raw, "url", scope="repository"),
        username=_optional_str(raw, "username", scope="repository"),
        password=_optional_str(raw, "password", scope="repository"),
    )


def _parse_project(item: Any, index: int) -> Project:
    if not isinstance(item, dict):
        raise ConfigurationError(f"project #{index} must be an object")

    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"project #{index} requires non-empty string field 'name'")

    flags = {}
    for key in ("enabled", "push", "clone"):
        value = item.get(key, False)
        if not isinstance(value, bool):
            raise ConfigurationError(f"project '{name}' field '{key}' must be a boolean")
        flags[key] = value

    return Project(name=name, **flags)


def _optional_str(raw: Dict[str, Any], key: str, scope: Optional[str] = None) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        label = f"{scope}.{key}" if scope else key
        raise ConfigurationError(f"field '{label}' must be a string")
    return value
