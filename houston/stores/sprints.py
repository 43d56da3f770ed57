"""
Sprint store.

Each sprint is a directory sprints/<id>/ holding sprint.yaml (metadata),
scope.yaml (ticket ids per bucket) and notes.md. Sprint status is never
stored; it is derived from the dates whenever it is needed.
"""

from dataclasses import dataclass
from pathlib import Path

from houston.lib.constants import SCOPE_BUCKETS, SCOPE_FILE, SPRINT_FILE, SPRINT_NOTES_FILE
from houston.lib.errors import NotFoundError
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.signature import ensure_signature
from houston.lib.yamlio import read_yaml, write_text_atomic, write_yaml_atomic


@dataclass
class SprintFiles:
    meta: dict
    scope: dict


def resolve_sprint_dir(config, sprint_id: str) -> Path:
    return Path(config.tracking.sprints_dir) / sprint_id


def ensure_sprint_structure(config, sprint_id: str) -> Path:
    """Create the sprint directory and its notes.md stub if missing."""
    sprint_dir = resolve_sprint_dir(config, sprint_id)
    sprint_dir.mkdir(parents=True, exist_ok=True)
    notes_file = sprint_dir / SPRINT_NOTES_FILE
    if not notes_file.exists():
        write_text_atomic(notes_file, f"# {sprint_id} Notes\n")
    return sprint_dir


def load_sprint(config, sprint_id: str) -> SprintFiles:
    """
    Load sprint metadata and scope.

    Raises:
        NotFoundError: If sprint.yaml or scope.yaml is missing
    """
    sprint_dir = resolve_sprint_dir(config, sprint_id)
    sprint_file = sprint_dir / SPRINT_FILE
    scope_file = sprint_dir / SCOPE_FILE
    if not sprint_file.exists() or not scope_file.exists():
        raise NotFoundError(f"Sprint {sprint_id} not found")
    return SprintFiles(meta=read_yaml(sprint_file) or {}, scope=read_yaml(scope_file) or {})


def save_sprint_metadata(config, sprint: dict, tracker: MutationTracker) -> dict:
    sprint_dir = ensure_sprint_structure(config, sprint["id"])
    payload = ensure_signature(dict(sprint), config.metadata.generator)
    write_yaml_atomic(sprint_dir / SPRINT_FILE, payload)
    tracker.record(ChangeType.SPRINTS)
    return payload


def save_sprint_scope(config, sprint_id: str, scope: dict, tracker: MutationTracker) -> dict:
    sprint_dir = ensure_sprint_structure(config, sprint_id)
    payload = ensure_signature(dict(scope), config.metadata.generator)
    write_yaml_atomic(sprint_dir / SCOPE_FILE, payload)
    tracker.record(ChangeType.SPRINTS)
    return payload


def empty_scope(generator: str) -> dict:
    scope = {bucket: [] for bucket in SCOPE_BUCKETS}
    scope["generated_by"] = generator
    return scope
