"""
Workspace inventory collection.

One pass over the tracking root turns the directory tree into a frozen
WorkspaceInventory. Files that cannot be read or parsed, and tickets that
lack a string id or a valid type, are reported as InventoryIssues and left
out of the snapshot rather than aborting collection.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from houston.lib.constants import (
    COMPONENTS_FILE,
    HISTORY_FILE,
    LABELS_FILE,
    PEOPLE_FILE,
    REPOS_FILE,
    ROUTING_FILE,
    SCOPE_FILE,
    SPRINT_FILE,
    TICKET_FILE,
    TRANSITIONS_FILE,
)
from houston.lib.ids import TicketType
from houston.lib.yamlio import read_yaml
from houston.stores.backlog import backlog_path, next_sprint_path
from houston.stores.people import PersonRecord
from houston.stores.repos import RepoConfig
from houston.stores.routing import ComponentRouting, parse_component_routing
from houston.stores.tickets import TicketRecord

logger = logging.getLogger(__name__)

# Document kinds, assigned by location under the configured directories.
TICKET_DOCUMENT = "ticket"
SPRINT_DOCUMENT = "sprint"
SCOPE_DOCUMENT = "sprint.scope"
BACKLOG_DOCUMENT = "backlog"
NEXT_SPRINT_DOCUMENT = "next-sprint"
QUEUE_DOCUMENT = "queue"
REPOS_DOCUMENT = "repos"
ROUTING_DOCUMENT = "component-routing"
TRANSITIONS_DOCUMENT = "transitions"

ISSUE_KINDS = ("missing", "io", "parse", "schema")
_TICKET_TYPES = {t.value for t in TicketType}


@dataclass(frozen=True)
class InventoryIssue:
    file: str
    kind: str  # one of ISSUE_KINDS
    message: str


@dataclass(frozen=True)
class WorkspaceDocument:
    relative_path: str
    absolute_path: Path
    data: object
    kind: str | None = None


@dataclass(frozen=True)
class TicketInfo:
    id: str
    type: str
    path: str
    absolute_path: Path
    history_path: Path
    history_relative: str
    data: dict

    @property
    def record(self) -> TicketRecord:
        return TicketRecord.from_dict(self.data)


@dataclass(frozen=True)
class SprintInfo:
    id: str
    path: str
    absolute_path: Path
    data: dict

    @property
    def start_date(self) -> str | None:
        value = self.data.get("start_date")
        return value if isinstance(value, str) else None

    @property
    def end_date(self) -> str | None:
        value = self.data.get("end_date")
        return value if isinstance(value, str) else None


@dataclass(frozen=True)
class SprintScopeInfo:
    id: str
    path: str
    absolute_path: Path
    data: dict


@dataclass(frozen=True)
class QueueInfo:
    """An ordered queue of ticket ids (backlog or next-sprint candidates)."""
    path: str
    ids: tuple[str, ...]


@dataclass(frozen=True)
class WorkspaceInventory:
    documents: tuple[WorkspaceDocument, ...] = ()
    tickets: tuple[TicketInfo, ...] = ()
    sprints: tuple[SprintInfo, ...] = ()
    sprint_scopes: tuple[SprintScopeInfo, ...] = ()
    backlog: QueueInfo | None = None
    next_sprint: QueueInfo | None = None
    components: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    people: tuple[PersonRecord, ...] = ()
    users: tuple[str, ...] = ()
    transitions: dict = field(default_factory=dict)
    repos: tuple[RepoConfig, ...] = ()
    routing: ComponentRouting = field(default_factory=ComponentRouting)
    checked_files: tuple[str, ...] = ()
    issues: tuple[InventoryIssue, ...] = ()

    def ticket_map(self) -> dict[str, TicketInfo]:
        """Tickets by id; the first occurrence wins for duplicated ids."""
        mapping = {}
        for ticket in self.tickets:
            mapping.setdefault(ticket.id, ticket)
        return mapping


def _relative(path: Path, base: Path) -> str:
    return Path(os.path.relpath(path, base)).as_posix()


def resolve_workspace_files(config, target: str | None = None) -> list[tuple[Path, str]]:
    """
    List (absolute, tracking-root relative) paths to inspect, sorted.

    With a target, only that path is returned, resolved against the
    workspace root.
    """
    base = Path(config.tracking.root)
    if target:
        absolute = (Path(config.workspace_root) / target).resolve()
        relative = _relative(absolute, base)
        return [(absolute, relative if relative != "." else absolute.name)]

    tracking = config.tracking
    search = (
        (Path(tracking.tickets_dir), f"**/{TICKET_FILE}"),
        (Path(tracking.sprints_dir), f"**/{SPRINT_FILE}"),
        (Path(tracking.sprints_dir), f"**/{SCOPE_FILE}"),
        (Path(tracking.backlog_dir), "*.yaml"),
        (base, "repos/*.yaml"),
        (base, "taxonomies/*.yaml"),
        (base, PEOPLE_FILE),
        (base, TRANSITIONS_FILE),
    )
    matches = set()
    for directory, pattern in search:
        matches.update(p for p in directory.glob(pattern) if p.is_file())
    return [(p, _relative(p, base)) for p in sorted(matches, key=str)]


def classify_document(config, absolute: Path) -> str | None:
    """
    Kind of a workspace file, judged by where it sits relative to the
    configured tickets, sprints and backlog directories.
    """
    tracking = config.tracking
    base = Path(tracking.root)
    absolute = Path(absolute)
    name = absolute.name

    if name == TICKET_FILE and absolute.is_relative_to(tracking.tickets_dir):
        return TICKET_DOCUMENT
    if absolute.is_relative_to(tracking.sprints_dir):
        if name == SPRINT_FILE:
            return SPRINT_DOCUMENT
        if name == SCOPE_FILE:
            return SCOPE_DOCUMENT
    if absolute == backlog_path(config):
        return BACKLOG_DOCUMENT
    if absolute == next_sprint_path(config):
        return NEXT_SPRINT_DOCUMENT
    if absolute.parent == Path(tracking.backlog_dir) and _is_yaml(absolute):
        return QUEUE_DOCUMENT
    fixed = {
        base / REPOS_FILE: REPOS_DOCUMENT,
        base / ROUTING_FILE: ROUTING_DOCUMENT,
        base / TRANSITIONS_FILE: TRANSITIONS_DOCUMENT,
    }
    return fixed.get(absolute)


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


def _read_document(path: Path, relative: str, issues: list):
    """Read a YAML file, recording io/parse failures. Returns (ok, data)."""
    try:
        return True, read_yaml(path)
    except yaml.YAMLError as e:
        issues.append(InventoryIssue(relative, "parse", str(e)))
    except (OSError, UnicodeDecodeError) as e:
        issues.append(InventoryIssue(relative, "io", str(e)))
    logger.warning(f"Skipping unreadable workspace file {relative}")
    return False, None


def _read_optional(base: Path, relative: str, issues: list):
    """Read a fixed workspace file; a missing file is a 'missing' issue."""
    path = base / relative
    if not path.exists():
        issues.append(InventoryIssue(relative, "missing", "File does not exist"))
        return None
    ok, data = _read_document(path, relative, issues)
    return data if ok else None


def _string_list(data, key: str) -> tuple[str, ...]:
    values = data.get(key) if isinstance(data, dict) else None
    if not isinstance(values, list):
        return ()
    return tuple(v for v in values if isinstance(v, str))


def collect_workspace_inventory(config, target: str | None = None) -> WorkspaceInventory:
    """
    Build the workspace snapshot for one command.

    Args:
        config: Workspace config
        target: Optional single file (relative to the workspace root) to
            collect instead of the whole tree. Taxonomies, people,
            transitions, repos and routing are loaded either way.

    Returns:
        WorkspaceInventory
    """
    base = Path(config.tracking.root)
    files = resolve_workspace_files(config, target)

    documents = []
    tickets = []
    sprints = []
    sprint_scopes = []
    backlog = None
    next_sprint = None
    issues = []

    for absolute, relative in files:
        if not absolute.exists():
            issues.append(InventoryIssue(relative, "missing", "File does not exist"))
            continue
        if not _is_yaml(absolute):
            continue

        ok, document = _read_document(absolute, relative, issues)
        if not ok:
            continue
        kind = classify_document(config, absolute)
        documents.append(WorkspaceDocument(relative, absolute, document, kind))
        data = document if isinstance(document, dict) else {}

        if kind == TICKET_DOCUMENT:
            ticket_id = data.get("id")
            ticket_type = data.get("type")
            if not isinstance(ticket_id, str) or ticket_type not in _TICKET_TYPES:
                issues.append(InventoryIssue(
                    relative, "schema", "Ticket is missing a string id or a valid type"
                ))
                continue
            history_path = absolute.parent / HISTORY_FILE
            tickets.append(TicketInfo(
                id=ticket_id,
                type=ticket_type,
                path=relative,
                absolute_path=absolute,
                history_path=history_path,
                history_relative=_relative(history_path, base),
                data=data,
            ))
        elif kind == SPRINT_DOCUMENT:
            sprint_id = data.get("id")
            if not isinstance(sprint_id, str):
                sprint_id = absolute.parent.name
            sprints.append(SprintInfo(sprint_id, relative, absolute, data))
        elif kind == SCOPE_DOCUMENT:
            sprint_scopes.append(SprintScopeInfo(absolute.parent.name, relative, absolute, data))
        elif kind == BACKLOG_DOCUMENT:
            backlog = QueueInfo(relative, _string_list(data, "ordered"))
        elif kind == NEXT_SPRINT_DOCUMENT:
            next_sprint = QueueInfo(relative, _string_list(data, "candidates"))

    components = _string_list(_read_optional(base, COMPONENTS_FILE, issues), "components")
    labels = _string_list(_read_optional(base, LABELS_FILE, issues), "labels")

    people_doc = _read_optional(base, PEOPLE_FILE, issues)
    raw_users = people_doc.get("users") if isinstance(people_doc, dict) else None
    people = tuple(
        PersonRecord.from_dict(u)
        for u in (raw_users if isinstance(raw_users, list) else [])
        if isinstance(u, dict) and isinstance(u.get("id"), str)
    )

    transitions = {}
    transitions_doc = _read_optional(base, TRANSITIONS_FILE, issues)
    if transitions_doc is not None:
        allowed = transitions_doc.get("allowed") if isinstance(transitions_doc, dict) else None
        if isinstance(allowed, dict):
            transitions = allowed
        else:
            issues.append(InventoryIssue(TRANSITIONS_FILE, "schema", 'Missing "allowed" transitions map'))

    repos_doc = _read_optional(base, REPOS_FILE, issues)
    raw_repos = repos_doc.get("repos") if isinstance(repos_doc, dict) else None
    repos = tuple(
        RepoConfig.from_dict(r)
        for r in (raw_repos if isinstance(raw_repos, list) else [])
        if isinstance(r, dict)
    )

    routing = ComponentRouting()
    if (base / ROUTING_FILE).exists():
        ok, routing_doc = _read_document(base / ROUTING_FILE, ROUTING_FILE, issues)
        if ok:
            routing = parse_component_routing(routing_doc)

    logger.debug(f"Collected {len(tickets)} ticket(s) from {len(files)} file(s)")
    return WorkspaceInventory(
        documents=tuple(documents),
        tickets=tuple(tickets),
        sprints=tuple(sprints),
        sprint_scopes=tuple(sprint_scopes),
        backlog=backlog,
        next_sprint=next_sprint,
        components=components,
        labels=labels,
        people=people,
        users=tuple(p.id for p in people),
        transitions=transitions,
        repos=repos,
        routing=routing,
        checked_files=tuple(relative for _, relative in files),
        issues=tuple(issues),
    )
