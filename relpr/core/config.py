"""Typed configuration loading.

Configuration is layered, later sources winning:

1. built-in defaults (``ActionConfig()``)
2. optional TOML file, ``[release]`` table
3. Action inputs (``INPUT_*`` environment variables)

The run environment (token, repository, event location) is read separately by
``load_environment`` since it is never set from a file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal, get_args

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "ActionConfig",
    "BranchMode",
    "BumpLabels",
    "ConfigError",
    "Repository",
    "RunEnvironment",
    "TagStrategy",
    "load_action_config",
    "load_environment",
    "DEFAULT_API_URL",
    "DEFAULT_SERVER_URL",
]

TagStrategy = Literal["tags", "release"]
BranchMode = Literal["stable", "per-tag"]

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_SERVER_URL = "https://github.com"

# Action input name -> config key. Names match action.yml.
_INPUT_KEYS: dict[str, str] = {
    "base-branch": "base_branch",
    "release-branch": "release_branch",
    "tag-prefix": "tag_prefix",
    "configuration_file_path": "notes_config_path",
    "tag-strategy": "tag_strategy",
    "branch-mode": "branch_mode",
    "marker-label": "marker_label",
}
_LABEL_INPUTS: dict[str, str] = {
    "label-major": "major",
    "label-minor": "minor",
    "label-patch": "patch",
}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Configuration cannot be loaded; fatal before any network call."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BumpLabels:
    """Label names that select a bump level."""

    major: str = "bump:major"
    minor: str = "bump:minor"
    patch: str = "bump:patch"

    def names(self) -> tuple[str, str, str]:
        return (self.major, self.minor, self.patch)


@dataclass(frozen=True, slots=True)
class Repository:
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, text: str) -> Result[Repository, ConfigError]:
        owner, sep, name = text.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            return Err(ConfigError(f"Invalid GITHUB_REPOSITORY: {text!r}"))
        return Ok(cls(owner=owner, name=name))


@dataclass(frozen=True, slots=True)
class ActionConfig:
    """Release PR behaviour."""

    base_branch: str = "main"
    release_branch: str = "release/pr"
    labels: BumpLabels = field(default_factory=BumpLabels)
    tag_prefix: str = "v"
    notes_config_path: str | None = None
    tag_strategy: TagStrategy = "tags"
    branch_mode: BranchMode = "stable"
    # Empty string disables marking.
    marker_label: str = "release-pr"

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ActionConfig:
        """Create from a mapping (parsed TOML ``[release]`` table).

        Raises:
            ValueError: unknown tag strategy or branch mode, or clashing labels.
        """
        labels: StrDict = get_table(data, "labels") or {}
        base = cls()
        return base.merged(data, labels)

    def merged(self, data: Mapping[str, object], labels: Mapping[str, object]) -> ActionConfig:
        """Return a copy with every non-blank value in ``data`` applied."""
        tag_strategy = get_str(data, "tag_strategy") or self.tag_strategy
        if tag_strategy not in get_args(TagStrategy):
            raise ValueError(f"unknown tag_strategy: {tag_strategy}")
        branch_mode = get_str(data, "branch_mode") or self.branch_mode
        if branch_mode not in get_args(BranchMode):
            raise ValueError(f"unknown branch_mode: {branch_mode}")

        bump_labels = BumpLabels(
            major=get_str(labels, "major") or self.labels.major,
            minor=get_str(labels, "minor") or self.labels.minor,
            patch=get_str(labels, "patch") or self.labels.patch,
        )
        if len(set(bump_labels.names())) != 3:
            raise ValueError(f"bump labels must be distinct: {', '.join(bump_labels.names())}")

        marker = data.get("marker_label")
        return replace(
            self,
            base_branch=get_str(data, "base_branch") or self.base_branch,
            release_branch=get_str(data, "release_branch") or self.release_branch,
            labels=bump_labels,
            tag_prefix=get_str(data, "tag_prefix") or self.tag_prefix,
            notes_config_path=get_str(data, "notes_config_path") or self.notes_config_path,
            tag_strategy=tag_strategy,  # type: ignore[arg-type]
            branch_mode=branch_mode,  # type: ignore[arg-type]
            marker_label=marker.strip() if isinstance(marker, str) else self.marker_label,
        )


@dataclass(frozen=True, slots=True)
class RunEnvironment:
    """Everything the hosting runner provides besides the config."""

    token: str
    repository: Repository
    event_name: str
    event_path: Path | None
    output_path: Path | None
    api_url: str = DEFAULT_API_URL
    server_url: str = DEFAULT_SERVER_URL


def _input(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(f"INPUT_{name.upper()}")
    if value is None:
        return None
    return value.strip() or None


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_action_config(
    env: Mapping[str, str],
    config_file: Path | None = None,
) -> Result[ActionConfig, ConfigError]:
    """Layer defaults, the optional TOML file and Action inputs.

    Args:
        env: Process environment (``INPUT_*`` variables are read from it)
        config_file: Optional TOML file; ``INPUT_CONFIG-FILE`` is used if None

    Returns:
        Ok(ActionConfig) on success, Err(ConfigError) on failure
    """
    path = config_file
    if path is None:
        from_input = _input(env, "config-file")
        path = Path(from_input) if from_input else None

    config = ActionConfig()
    if path is not None:
        parsed = _parse_toml(path)
        if isinstance(parsed, Err):
            return parsed
        table: StrDict = get_table(parsed.value, "release") or {}
        try:
            config = ActionConfig.from_dict(table)
        except ValueError as e:
            return Err(ConfigError(f"Invalid config: {e}", path=path))

    # Blank inputs are unset; the Action passes every input, set or not.
    inputs: StrDict = {}
    for name, key in _INPUT_KEYS.items():
        value = _input(env, name)
        if value is not None:
            inputs[key] = value
    if inputs.get("marker_label") == "none":
        inputs["marker_label"] = ""
    labels: StrDict = {}
    for name, key in _LABEL_INPUTS.items():
        value = _input(env, name)
        if value is not None:
            labels[key] = value

    try:
        return Ok(config.merged(inputs, labels))
    except ValueError as e:
        return Err(ConfigError(f"Invalid input: {e}"))


def load_environment(env: Mapping[str, str]) -> Result[RunEnvironment, ConfigError]:
    """Read token, repository and event location from the runner environment."""
    token = _input(env, "github-token") or (env.get("GITHUB_TOKEN") or "").strip()
    if not token:
        return Err(ConfigError("Missing github-token (set the input or GITHUB_TOKEN)"))

    repo = Repository.parse(env.get("GITHUB_REPOSITORY", ""))
    if isinstance(repo, Err):
        return repo

    event_path = env.get("GITHUB_EVENT_PATH")
    output_path = env.get("GITHUB_OUTPUT")
    return Ok(
        RunEnvironment(
            token=token,
            repository=repo.value,
            event_name=env.get("GITHUB_EVENT_NAME", "").strip(),
            event_path=Path(event_path) if event_path else None,
            output_path=Path(output_path) if output_path else None,
            api_url=(env.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
            server_url=(env.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL).rstrip("/"),
        )
    )
