"""
Workspace configuration.

A workspace is identified by a houston.config.yaml (or .yml) file. It is
found by walking up from the working directory, with HOUSTON_CONFIG_PATH
as the fallback. The directory holding the config file is the workspace
root; relative paths in the file resolve against it.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from houston import __version__
from houston.lib.constants import CONFIG_FILE_CANDIDATES, CONFIG_PATH_ENV, GENERATOR_PREFIX
from houston.lib.errors import WorkspaceNotDetectedError
from houston.lib.yamlio import read_yaml

logger = logging.getLogger(__name__)


@dataclass
class TrackingConfig:
    """Directories holding workspace state."""
    root: Path
    schema_dir: Path
    tickets_dir: Path
    backlog_dir: Path
    sprints_dir: Path


@dataclass
class GitConfig:
    auto_commit: bool = True
    auto_push: bool | str = "auto"  # True, False or "auto"
    auto_pull: bool = True
    pull_rebase: bool = True


@dataclass
class CliMetadata:
    version: str
    generator: str


@dataclass
class CliConfig:
    workspace_root: Path
    tracking: TrackingConfig
    metadata: CliMetadata
    git: GitConfig = field(default_factory=GitConfig)
    auth: dict | None = None
    config_path: Path | None = None


def _get(mapping: dict, snake: str):
    """Read a key in snake_case, falling back to its camelCase spelling."""
    if snake in mapping:
        return mapping[snake]
    head, *rest = snake.split("_")
    return mapping.get(head + "".join(part.title() for part in rest))


PUSH_POLICY_ALIASES = {
    "true": True,
    "always": True,
    "yes": True,
    "false": False,
    "never": False,
    "no": False,
    "auto": "auto",
}


def normalize_push_policy(value) -> bool | str:
    """
    Map a configured auto_push value onto True, False or "auto".

    Unrecognised values fall back to "auto" with a warning, so a typo in
    the config never fails a command after its commit has been made.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in PUSH_POLICY_ALIASES:
        return PUSH_POLICY_ALIASES[value.strip().lower()]
    logger.warning(f"Unknown git.auto_push value {value!r}; using 'auto'")
    return "auto"


def _resolve_dir(workspace_root: Path, value, default: Path) -> Path:
    if not value:
        return default
    return (workspace_root / str(value)).resolve()


def build_config(workspace_root: Path, raw: dict | None = None, version: str = __version__,
                 config_path: Path | None = None) -> CliConfig:
    """
    Apply defaults to a parsed config mapping.

    Args:
        workspace_root: Directory containing the config file
        raw: Parsed config file contents (None for all defaults)
        version: Tool version used for the provenance signature
        config_path: Path of the config file, if any

    Returns:
        CliConfig with every directory resolved to an absolute path
    """
    workspace_root = Path(workspace_root).resolve()
    raw = raw or {}
    tracking_raw = raw.get("tracking") if isinstance(raw.get("tracking"), dict) else {}
    git_raw = raw.get("git") if isinstance(raw.get("git"), dict) else {}

    root = _resolve_dir(workspace_root, tracking_raw.get("root"), workspace_root)
    tracking = TrackingConfig(
        root=root,
        schema_dir=_resolve_dir(workspace_root, _get(tracking_raw, "schema_dir"), root / "schema"),
        tickets_dir=_resolve_dir(workspace_root, _get(tracking_raw, "tickets_dir"), root / "tickets"),
        backlog_dir=_resolve_dir(workspace_root, _get(tracking_raw, "backlog_dir"), root / "backlog"),
        sprints_dir=_resolve_dir(workspace_root, _get(tracking_raw, "sprints_dir"), root / "sprints"),
    )

    git = GitConfig()
    for name in ("auto_commit", "auto_push", "auto_pull", "pull_rebase"):
        value = _get(git_raw, name)
        if value is None:
            continue
        if name == "auto_push":
            value = normalize_push_policy(value)
        setattr(git, name, value)

    return CliConfig(
        workspace_root=workspace_root,
        tracking=tracking,
        metadata=CliMetadata(version=version, generator=f"{GENERATOR_PREFIX}{version}"),
        git=git,
        auth=raw.get("auth") if isinstance(raw.get("auth"), dict) else None,
        config_path=config_path,
    )


def locate_config_file(start_dir: Path) -> Path | None:
    """Find the nearest config file at or above start_dir, else via the environment."""
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        for candidate in CONFIG_FILE_CANDIDATES:
            path = directory / candidate
            if path.is_file():
                return path.resolve()

    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path and Path(env_path).is_file():
        return Path(env_path).resolve()
    return None


def load_config(cwd: Path | None = None) -> CliConfig:
    """
    Locate and load the workspace config.

    Raises:
        WorkspaceNotDetectedError: If no config file can be found
    """
    start_dir = Path(cwd or os.getcwd()).resolve()
    config_path = locate_config_file(start_dir)
    if config_path is None:
        raise WorkspaceNotDetectedError(
            f"No Houston workspace detected from {start_dir}. "
            f"Run this command inside a workspace or set {CONFIG_PATH_ENV}."
        )

    raw = read_yaml(config_path)
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring invalid config at {config_path}")
        raw = None

    return build_config(config_path.parent, raw, config_path=config_path)
