"""
Derived views over a workspace inventory.

build_workspace_analytics is a pure function of the inventory and the
reference date: it never touches the filesystem, and calling it twice on
the same snapshot yields identical results. Sprint status is computed here
on every call and is never persisted.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime

from houston.lib.constants import BACKLOG_FILE, NEXT_SPRINT_FILE, SCOPE_BUCKETS
from houston.lib.ids import TicketType
from houston.stores.repos import RepoConfig
from houston.workspace.inventory import QueueInfo, SprintInfo, SprintScopeInfo, TicketInfo, WorkspaceInventory

SPRINT_STATUSES = ("active", "upcoming", "completed", "unknown")


@dataclass(frozen=True)
class TicketOverview:
    id: str
    type: str
    status: str | None
    assignee: str | None
    summary: str | None
    title: str | None
    components: tuple[str, ...]
    labels: tuple[str, ...]
    parent_id: str | None
    sprint_id: str | None
    due_date: str | None
    repo_ids: tuple[str, ...]
    repos: tuple[dict, ...]
    path: str
    history_relative: str
    updated_at: str | None
    created_at: str | None


@dataclass(frozen=True)
class SprintScopeDetails:
    epics: tuple[TicketOverview, ...] = ()
    stories: tuple[TicketOverview, ...] = ()
    subtasks: tuple[TicketOverview, ...] = ()
    bugs: tuple[TicketOverview, ...] = ()
    missing: tuple[str, ...] = ()


@dataclass(frozen=True)
class SprintOverview:
    id: str
    name: str | None
    start_date: str | None
    end_date: str | None
    goal: str | None
    status: str
    total_scoped: int
    scope: SprintScopeDetails
    path: str
    scope_path: str | None


@dataclass(frozen=True)
class QueueOverview:
    path: str
    tickets: tuple[TicketOverview, ...]
    missing: tuple[str, ...]


@dataclass(frozen=True)
class RepoUsage:
    config: RepoConfig
    tickets: tuple[TicketOverview, ...]


@dataclass(frozen=True)
class WorkspaceSummary:
    ticket_type_counts: dict
    ticket_status_counts: dict
    total_tickets: int
    backlog_count: int
    next_sprint_count: int
    repo_count: int
    component_count: int
    label_count: int
    user_count: int
    active_sprint_count: int


@dataclass(frozen=True)
class WorkspaceAnalytics:
    tickets: tuple[TicketOverview, ...]
    sprints: tuple[SprintOverview, ...]
    backlog: QueueOverview
    next_sprint: QueueOverview
    repo_usage: tuple[RepoUsage, ...]
    unknown_repo_tickets: tuple[TicketOverview, ...]
    summary: WorkspaceSummary
    components: tuple[str, ...]
    labels: tuple[str, ...]
    users: tuple[str, ...]
    tickets_by_id: dict = field(default_factory=dict, repr=False, compare=False)

    def to_dict(self) -> dict:
        """JSON-serializable form with a deterministic layout."""
        data = asdict(self)
        data.pop("tickets_by_id")
        return data


def parse_date(value) -> date | None:
    """Parse an ISO date or date-time string; anything else gives None."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def classify_sprint(start, end, today: date) -> str:
    """
    Classify a sprint window relative to today.

    Both bounds are inclusive. With only one bound present:
      - start only: "upcoming" before the start, otherwise "active"
        (a sprint without an end date never counts as completed)
      - end only: "completed" after the end, otherwise "active"
    With no usable bound the status is "unknown".
    """
    start_date = start if isinstance(start, date) else parse_date(start)
    end_date = end if isinstance(end, date) else parse_date(end)

    if start_date is None and end_date is None:
        return "unknown"
    if start_date is not None and today < start_date:
        return "upcoming"
    if end_date is not None and today > end_date:
        return "completed"
    return "active"


def _string(data: dict, key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _strings(data: dict, key: str) -> tuple[str, ...]:
    value = data.get(key)
    if not isinstance(value, list):
        return ()
    return tuple(v for v in value if isinstance(v, str))


def _repo_entries(data: dict) -> tuple[dict, ...]:
    code = data.get("code")
    if not isinstance(code, dict) or not isinstance(code.get("repos"), list):
        return ()
    return tuple(entry for entry in code["repos"] if isinstance(entry, dict))


def ticket_overview(ticket: TicketInfo) -> TicketOverview:
    data = ticket.data
    repos = _repo_entries(data)
    return TicketOverview(
        id=ticket.id,
        type=ticket.type,
        status=_string(data, "status"),
        assignee=_string(data, "assignee"),
        summary=_string(data, "summary"),
        title=_string(data, "title"),
        components=_strings(data, "components"),
        labels=_strings(data, "labels"),
        parent_id=_string(data, "parent_id"),
        sprint_id=_string(data, "sprint_id"),
        due_date=_string(data, "due_date"),
        repo_ids=tuple(e["repo_id"] for e in repos if isinstance(e.get("repo_id"), str)),
        repos=repos,
        path=ticket.path,
        history_relative=ticket.history_relative,
        updated_at=_string(data, "updated_at"),
        created_at=_string(data, "created_at"),
    )


def _pick(ids, tickets_by_id: dict) -> tuple[TicketOverview, ...]:
    return tuple(tickets_by_id[i] for i in ids if i in tickets_by_id)


def _missing(ids, tickets_by_id: dict) -> list[str]:
    return [i for i in ids if i not in tickets_by_id]


def _scope_details(scope: SprintScopeInfo | None, tickets_by_id: dict) -> SprintScopeDetails:
    if scope is None:
        return SprintScopeDetails()
    buckets = {bucket: _strings(scope.data, bucket) for bucket in SCOPE_BUCKETS}
    missing = []
    for ids in buckets.values():
        missing.extend(_missing(ids, tickets_by_id))
    return SprintScopeDetails(
        **{bucket: _pick(ids, tickets_by_id) for bucket, ids in buckets.items()},
        missing=tuple(dict.fromkeys(missing)),
    )


def _sprint_overview(sprint: SprintInfo, scope: SprintScopeInfo | None, tickets_by_id: dict,
                     today: date) -> SprintOverview:
    details = _scope_details(scope, tickets_by_id)
    return SprintOverview(
        id=sprint.id,
        name=_string(sprint.data, "name"),
        start_date=sprint.start_date,
        end_date=sprint.end_date,
        goal=_string(sprint.data, "goal"),
        status=classify_sprint(sprint.start_date, sprint.end_date, today),
        total_scoped=sum(len(getattr(details, bucket)) for bucket in SCOPE_BUCKETS),
        scope=details,
        path=sprint.path,
        scope_path=scope.path if scope else None,
    )


def resolve_queue(queue: QueueInfo | None, tickets_by_id: dict, default_path: str) -> QueueOverview:
    """Split queue ids into found tickets and missing ids, keeping order."""
    ids = queue.ids if queue else ()
    return QueueOverview(
        path=queue.path if queue else default_path,
        tickets=_pick(ids, tickets_by_id),
        missing=tuple(_missing(ids, tickets_by_id)),
    )


def build_workspace_analytics(inventory: WorkspaceInventory, today: date | None = None) -> WorkspaceAnalytics:
    """
    Derive summaries, sprint status, queue resolution and repo usage.

    Args:
        inventory: Snapshot from collect_workspace_inventory
        today: Reference date for sprint status (defaults to the local date)

    Returns:
        WorkspaceAnalytics
    """
    today = today or date.today()

    overviews = sorted((ticket_overview(t) for t in inventory.tickets), key=lambda o: o.id)
    tickets_by_id = {}
    for overview in overviews:
        tickets_by_id.setdefault(overview.id, overview)

    type_counts = {t.value: 0 for t in TicketType}
    status_counts = {}
    repo_index: dict[str, dict[str, TicketOverview]] = {}
    known_repo_ids = {repo.id for repo in inventory.repos}
    unknown = {}
    for overview in overviews:
        type_counts[overview.type] = type_counts.get(overview.type, 0) + 1
        if overview.status:
            status_counts[overview.status] = status_counts.get(overview.status, 0) + 1
        for repo_id in overview.repo_ids:
            repo_index.setdefault(repo_id, {})[overview.id] = overview
            if repo_id not in known_repo_ids:
                unknown[overview.id] = overview

    scopes = {scope.id: scope for scope in inventory.sprint_scopes}
    sprints = sorted(
        (_sprint_overview(s, scopes.get(s.id), tickets_by_id, today) for s in inventory.sprints),
        key=lambda s: (s.start_date or "", s.id),
    )

    backlog = resolve_queue(inventory.backlog, tickets_by_id, BACKLOG_FILE)
    next_sprint = resolve_queue(inventory.next_sprint, tickets_by_id, NEXT_SPRINT_FILE)

    repo_usage = tuple(
        RepoUsage(
            config=repo,
            tickets=tuple(sorted(repo_index.get(repo.id, {}).values(), key=lambda o: o.id)),
        )
        for repo in sorted(inventory.repos, key=lambda r: r.id or "")
    )

    summary = WorkspaceSummary(
        ticket_type_counts=type_counts,
        ticket_status_counts=dict(sorted(status_counts.items())),
        total_tickets=len(overviews),
        backlog_count=len(backlog.tickets),
        next_sprint_count=len(next_sprint.tickets),
        repo_count=len(inventory.repos),
        component_count=len(inventory.components),
        label_count=len(inventory.labels),
        user_count=len(inventory.users),
        active_sprint_count=sum(1 for s in sprints if s.status == "active"),
    )

    return WorkspaceAnalytics(
        tickets=tuple(overviews),
        sprints=tuple(sprints),
        backlog=backlog,
        next_sprint=next_sprint,
        repo_usage=repo_usage,
        unknown_repo_tickets=tuple(sorted(unknown.values(), key=lambda o: o.id)),
        summary=summary,
        components=tuple(sorted(inventory.components)),
        labels=tuple(sorted(inventory.labels)),
        users=tuple(sorted(inventory.users)),
        tickets_by_id=tickets_by_id,
    )
