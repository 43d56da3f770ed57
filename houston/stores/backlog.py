"""Backlog and next-sprint candidate queues.

Both queues are ordered lists of ticket ids; the order is the persisted
prioritization.
"""

from pathlib import Path

from houston.lib.constants import BACKLOG_FILE, NEXT_SPRINT_FILE
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.signature import ensure_signature
from houston.lib.yamlio import read_yaml_if_exists, write_yaml_atomic


def backlog_path(config) -> Path:
    return Path(config.tracking.backlog_dir) / Path(BACKLOG_FILE).name


def next_sprint_path(config) -> Path:
    return Path(config.tracking.backlog_dir) / Path(NEXT_SPRINT_FILE).name


def load_backlog(config) -> dict:
    """Load backlog.yaml; a missing file reads as an empty queue."""
    data = read_yaml_if_exists(backlog_path(config), {})
    return {"ordered": [], **data} if isinstance(data, dict) else {"ordered": []}


def load_next_sprint_candidates(config) -> dict:
    """Load next-sprint-candidates.yaml; a missing file reads as empty."""
    data = read_yaml_if_exists(next_sprint_path(config), {})
    return {"candidates": [], **data} if isinstance(data, dict) else {"candidates": []}


def save_backlog(config, ordered: list[str], tracker: MutationTracker, notes: str = "") -> dict:
    payload = ensure_signature({"ordered": list(ordered), "notes": notes}, config.metadata.generator)
    write_yaml_atomic(backlog_path(config), payload)
    tracker.record(ChangeType.BACKLOG)
    return payload


def save_next_sprint_candidates(config, candidates: list[str], tracker: MutationTracker,
                                notes: str = "") -> dict:
    payload = ensure_signature({"candidates": list(candidates), "notes": notes}, config.metadata.generator)
    write_yaml_atomic(next_sprint_path(config), payload)
    tracker.record(ChangeType.BACKLOG)
    return payload
