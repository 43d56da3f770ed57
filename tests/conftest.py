"""Shared workspace builder for tests."""

import json
from pathlib import Path

import pytest

from houston.lib.config import build_config
from houston.lib.ids import TicketType, require_ticket_type
from houston.lib.schema_registry import clear_registry_cache
from houston.lib.yamlio import write_text_atomic, write_yaml_atomic

GENERATOR = "houston@0.1.0"
CREATED = "2024-06-01T09:00:00.000Z"

EPIC_ID = "EPIC-11111111-1111-1111-1111-111111111111"
STORY_ID = "ST-22222222-2222-2222-2222-222222222222"
SUBTASK_ID = "SB-33333333-3333-3333-3333-333333333333"
BUG_ID = "BG-55555555-5555-5555-5555-555555555555"
SPRINT_ID = "S-44444444-4444-4444-4444-444444444444"

_FLOW = {
    "Backlog": ["Planned", "Ready", "Canceled"],
    "Planned": ["Ready", "Backlog"],
    "Ready": ["In Progress"],
    "In Progress": ["In Review", "Blocked"],
    "Blocked": ["In Progress"],
    "In Review": ["Done", "In Progress"],
    "Done": ["Archived"],
}
TRANSITIONS = {t.value: _FLOW for t in TicketType}


class WorkspaceBuilder:
    """Writes a small tracking tree under a temporary directory."""

    def __init__(self, root: Path):
        self.root = root
        self.config = build_config(root, version="0.1.0")

    def write_yaml(self, relative: str, data) -> Path:
        path = self.root / relative
        write_yaml_atomic(path, data)
        return path

    def base(self) -> "WorkspaceBuilder":
        """Taxonomies, people, transitions, one repo and empty queues."""
        self.write_yaml("taxonomies/components.yaml", {"components": ["api", "web"]})
        self.write_yaml("taxonomies/labels.yaml", {"labels": ["backend"]})
        self.write_yaml("people/users.yaml", {"users": [
            {"id": "user:alice", "name": "Alice", "email": "alice@example.com", "roles": ["developer"]},
            {"id": "user:bob", "name": "Bob"},
        ]})
        self.write_yaml("transitions.yaml", {"allowed": TRANSITIONS, "generated_by": GENERATOR})
        self.write_yaml("repos/repos.yaml", {"repos": [
            {"id": "api", "provider": "local", "default_branch": "main"},
        ]})
        self.set_backlog([])
        self.set_next_sprint([])
        return self

    def add_ticket(self, ticket_id: str, status: str = "Backlog", history: list | None = None,
                   **fields) -> dict:
        ticket_type = require_ticket_type(ticket_id)
        data = {
            "id": ticket_id,
            "type": ticket_type.value,
            "summary": f"Summary of {ticket_id}",
            "title": f"Title of {ticket_id}",
            "assignee": "user:alice",
            "description": "description.md",
            "components": ["api"],
            "labels": [],
            "due_date": "2024-06-10",
            "status": status,
            "created_at": CREATED,
            "updated_at": CREATED,
            "version": 1,
            "generated_by": GENERATOR,
            "code": {
                "branch_strategy": "per-story",
                "auto_create_branch": False,
                "auto_open_pr": False,
                "repos": [],
            },
        }
        if ticket_type is TicketType.SUBTASK:
            data["story_points"] = 1
        elif ticket_type is TicketType.BUG:
            data["story_points"] = 1
            data["time_tracking"] = []
        data.update(fields)

        ticket_dir = self.root / "tickets" / ticket_type.directory / ticket_id
        write_yaml_atomic(ticket_dir / "ticket.yaml", data)
        write_text_atomic(ticket_dir / "description.md", f"# {data['title']}\n")
        if history is None:
            history = [{"op": "create", "actor": "user:alice", "to": status, "ts": CREATED}]
        lines = "".join(json.dumps(event) + "\n" for event in history)
        write_text_atomic(ticket_dir / "history.ndjson", lines)
        return data

    def add_sprint(self, sprint_id: str, start: str | None, end: str | None,
                   name: str = "Sprint 1", scope: dict | None = None) -> None:
        meta = {"id": sprint_id, "name": name, "generated_by": GENERATOR}
        if start:
            meta["start_date"] = start
        if end:
            meta["end_date"] = end
        self.write_yaml(f"sprints/{sprint_id}/sprint.yaml", meta)
        scope_data = {"epics": [], "stories": [], "subtasks": [], "bugs": [], "generated_by": GENERATOR}
        scope_data.update(scope or {})
        self.write_yaml(f"sprints/{sprint_id}/scope.yaml", scope_data)

    def set_backlog(self, ids: list[str]) -> None:
        self.write_yaml("backlog/backlog.yaml", {"ordered": ids, "notes": "", "generated_by": GENERATOR})

    def set_next_sprint(self, ids: list[str]) -> None:
        self.write_yaml(
            "backlog/next-sprint-candidates.yaml",
            {"candidates": ids, "notes": "", "generated_by": GENERATOR},
        )


@pytest.fixture
def workspace(tmp_path):
    clear_registry_cache()
    return WorkspaceBuilder(tmp_path)
