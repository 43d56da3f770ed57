"""
Workspace validation.

Runs schema checks and referential-integrity rules over one inventory
snapshot. Violations are collected rather than raised one at a time; a
caller that wants an exception uses WorkspaceValidationResult.raise_for_errors.

Rules (the `rule` field of each ValidationIssue):
    parse, io, schema  unreadable files and schema violations
    signature          generated_by present but not written by houston
    ticket             duplicate ids, ticket directory disagreeing with its id
    components, labels unknown or empty taxonomy references
    people             missing or unknown assignee, unknown approvers
    parent             parent typing (story->epic, subtask/bug->story)
    sprint             unknown sprint_id
    due-date           invalid due_date, or later than sprint end / parent due
    code               branch and repo references on code.repos
    history            history.ndjson presence, shape and agreement
    transition         status changes not allowed by transitions.yaml
    completion         Done stories with open subtasks or bugs
    scope              sprint scope entries of the wrong type or unknown
    backlog            queue entries referencing unknown tickets
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from houston.lib.config import CliConfig, load_config
from houston.lib.constants import BACKLOG_FILE, NEXT_SPRINT_FILE, SCOPE_BUCKETS
from houston.lib.errors import SchemaValidationError
from houston.lib.ids import TicketType, ticket_type_from_id
from houston.lib.schema_registry import get_schema_registry
from houston.lib.signature import has_valid_signature
from houston.workspace.inventory import (
    BACKLOG_DOCUMENT,
    NEXT_SPRINT_DOCUMENT,
    QUEUE_DOCUMENT,
    REPOS_DOCUMENT,
    ROUTING_DOCUMENT,
    SCOPE_DOCUMENT,
    SPRINT_DOCUMENT,
    TICKET_DOCUMENT,
    TRANSITIONS_DOCUMENT,
    QueueInfo,
    SprintInfo,
    SprintScopeInfo,
    TicketInfo,
    WorkspaceInventory,
    collect_workspace_inventory,
)

logger = logging.getLogger(__name__)

SCOPE_BUCKET_TYPES = dict(zip(SCOPE_BUCKETS, ("epic", "story", "subtask", "bug")))
HISTORY_UPDATE_TOLERANCE = timedelta(seconds=1)
PARENT_TYPES = {
    "story": ("epic", "Story parent must be an epic"),
    "subtask": ("story", "Subtask parent must be a story"),
    "bug": ("story", "Bug parent must be a story"),
}


@dataclass
class ValidationIssue:
    file: str
    rule: str
    message: str
    details: object = None

    def __str__(self) -> str:
        return f"{self.file}: [{self.rule}] {self.message}"


@dataclass
class WorkspaceValidationResult:
    checked_files: list[str] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise SchemaValidationError carrying every issue, if there are any."""
        if self.errors:
            raise SchemaValidationError(self.errors)

    def to_dict(self) -> dict:
        return {
            "checked_files": list(self.checked_files),
            "errors": [
                {"file": e.file, "rule": e.rule, "message": e.message, "details": e.details}
                for e in self.errors
            ],
        }


@dataclass
class _Context:
    tickets: tuple[TicketInfo, ...]
    ticket_by_id: dict[str, TicketInfo]
    components: set[str]
    labels: set[str]
    users: set[str]
    sprints: dict[str, SprintInfo]
    sprint_scopes: dict[str, SprintScopeInfo]
    backlog: QueueInfo
    next_sprint: QueueInfo
    transitions: dict
    repo_ids: set[str]


def _string(data: dict, key: str) -> str | None:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, str) and value.strip() else None


def _strings(data: dict, key: str) -> list[str]:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str) and v.strip()]


def _status_value(value) -> str | None:
    """History events carry a status either as a string or as {status: ...}."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("status"), str):
        return value["status"]
    return None


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO date or date-time into an aware UTC datetime."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


SCHEMA_BY_DOCUMENT = {
    SPRINT_DOCUMENT: "sprint",
    SCOPE_DOCUMENT: "sprint.scope",
    BACKLOG_DOCUMENT: "backlog",
    NEXT_SPRINT_DOCUMENT: "backlog",
    QUEUE_DOCUMENT: "backlog",
    REPOS_DOCUMENT: "repos",
    ROUTING_DOCUMENT: "component-routing",
    TRANSITIONS_DOCUMENT: "transitions",
}


def infer_schema_key(kind: str | None, data) -> str | None:
    """Pick the schema that governs a workspace document of the given kind, if any."""
    if kind == TICKET_DOCUMENT:
        ticket_type = data.get("type") if isinstance(data, dict) else None
        if ticket_type in {t.value for t in TicketType}:
            return f"ticket.{ticket_type}"
        return "ticket.base"
    return SCHEMA_BY_DOCUMENT.get(kind)


def _build_context(inventory: WorkspaceInventory, errors: list) -> _Context:
    ticket_by_id = {}
    for ticket in inventory.tickets:
        if ticket.id in ticket_by_id:
            errors.append(ValidationIssue(ticket.path, "ticket", f"Duplicate ticket id {ticket.id}"))
        else:
            ticket_by_id[ticket.id] = ticket

    return _Context(
        tickets=inventory.tickets,
        ticket_by_id=ticket_by_id,
        components=set(inventory.components),
        labels=set(inventory.labels),
        users=set(inventory.users),
        sprints={s.id: s for s in inventory.sprints},
        sprint_scopes={s.id: s for s in inventory.sprint_scopes},
        backlog=inventory.backlog or QueueInfo(BACKLOG_FILE, ()),
        next_sprint=inventory.next_sprint or QueueInfo(NEXT_SPRINT_FILE, ()),
        transitions=inventory.transitions,
        repo_ids={r.id for r in inventory.repos},
    )


def _check_location(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    errors = []
    id_type = ticket_type_from_id(ticket.id)
    if id_type is None or id_type.value != ticket.type:
        errors.append(ValidationIssue(
            ticket.path, "ticket", f"Ticket id {ticket.id} does not match type {ticket.type}"
        ))
        return errors
    parts = Path(ticket.path).parts
    if len(parts) < 4 or parts[-3] != id_type.directory or parts[-2] != ticket.id:
        errors.append(ValidationIssue(
            ticket.path, "ticket",
            f"Ticket {ticket.id} should live under tickets/{id_type.directory}/{ticket.id}/",
        ))
    return errors


def _check_components(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    errors = []
    components = _strings(ticket.data, "components")
    if not components:
        errors.append(ValidationIssue(ticket.path, "components", "components list must not be empty"))
    for component in components:
        if component not in ctx.components:
            errors.append(ValidationIssue(ticket.path, "components", f"Unknown component {component}"))
    for label in _strings(ticket.data, "labels"):
        if label not in ctx.labels:
            errors.append(ValidationIssue(ticket.path, "labels", f"Unknown label {label}"))
    return errors


def _check_people(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    errors = []
    assignee = _string(ticket.data, "assignee")
    if not assignee:
        errors.append(ValidationIssue(ticket.path, "people", "Missing assignee"))
    elif assignee not in ctx.users:
        errors.append(ValidationIssue(ticket.path, "people", f"Unknown assignee {assignee}"))
    for approver in _strings(ticket.data, "approvers"):
        if approver not in ctx.users:
            errors.append(ValidationIssue(ticket.path, "people", f"Unknown approver {approver}"))
    return errors


def _check_parent(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    errors = []
    parent_id = _string(ticket.data, "parent_id")
    if ticket.type == "subtask" and not parent_id:
        errors.append(ValidationIssue(ticket.path, "parent", "Subtask requires parent_id referencing a story"))
    if not parent_id:
        return errors

    parent = ctx.ticket_by_id.get(parent_id)
    if parent is None:
        errors.append(ValidationIssue(ticket.path, "parent", f"Parent ticket {parent_id} not found"))
        return errors

    expected = PARENT_TYPES.get(ticket.type)
    if expected and parent.type != expected[0]:
        errors.append(ValidationIssue(
            ticket.path, "parent", f"{expected[1]} (got {parent.type})"
        ))
    return errors


def _check_sprint(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    sprint_id = _string(ticket.data, "sprint_id")
    if sprint_id and sprint_id not in ctx.sprints:
        return [ValidationIssue(ticket.path, "sprint", f"Sprint {sprint_id} not found")]
    return []


def _check_due_dates(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    due = _string(ticket.data, "due_date")
    due_at = parse_timestamp(due)
    if due_at is None:
        return [ValidationIssue(ticket.path, "due-date", "Invalid or missing due_date")]

    errors = []
    sprint = ctx.sprints.get(_string(ticket.data, "sprint_id") or "")
    if sprint is not None:
        sprint_end = parse_timestamp(sprint.end_date)
        if sprint_end and due_at > sprint_end:
            errors.append(ValidationIssue(
                ticket.path, "due-date", f"due_date {due} exceeds sprint end {sprint.end_date}"
            ))

    parent_id = _string(ticket.data, "parent_id")
    parent = ctx.ticket_by_id.get(parent_id or "")
    if parent is not None:
        parent_due = _string(parent.data, "due_date")
        parent_due_at = parse_timestamp(parent_due)
        if parent_due_at and due_at > parent_due_at:
            errors.append(ValidationIssue(
                ticket.path, "due-date",
                f"due_date {due} exceeds parent {parent_id} due date {parent_due}",
            ))
    return errors


def _check_code(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    errors = []
    code = ticket.data.get("code") if isinstance(ticket.data.get("code"), dict) else {}
    repos = [r for r in code.get("repos", []) if isinstance(r, dict)] if isinstance(code.get("repos"), list) else []
    branch_count = sum(1 for r in repos if isinstance(r.get("branch"), str) and r["branch"].strip())
    auto_create = code.get("auto_create_branch") is not False
    status = _string(ticket.data, "status")

    if auto_create and status in ("Ready", "In Progress") and branch_count == 0:
        errors.append(ValidationIssue(ticket.path, "code", f"Status {status} requires at least one branch entry"))
    if ticket.type in ("subtask", "bug") and status == "In Progress" and branch_count == 0:
        errors.append(ValidationIssue(
            ticket.path, "code", f"{ticket.type} in In Progress must have at least one branch"
        ))

    for entry in repos:
        repo_id = entry.get("repo_id")
        if not repo_id:
            errors.append(ValidationIssue(ticket.path, "code", "Linked code entry missing repo_id"))
            continue
        if repo_id not in ctx.repo_ids:
            errors.append(ValidationIssue(ticket.path, "code", f"Unknown repo reference {repo_id}"))
        if not entry.get("branch"):
            errors.append(ValidationIssue(ticket.path, "code", f"Repo {repo_id} missing branch name"))
        pr = entry.get("pr")
        if status == "Done" and isinstance(pr, dict):
            state = pr.get("state")
            if isinstance(state, str) and state != "merged":
                errors.append(ValidationIssue(
                    ticket.path, "code", f"Ticket Done requires merged PR for repo {repo_id}"
                ))
    return errors


def _check_history(ticket: TicketInfo, ctx: _Context) -> list[ValidationIssue]:
    """Replay history.ndjson and compare it with the ticket's current state."""
    errors = []
    where = ticket.history_relative
    allowed = ctx.transitions.get(ticket.type) or {}

    if not ticket.history_path.exists():
        return [ValidationIssue(where, "history", "Missing history.ndjson")]
    lines = [line for line in ticket.history_path.read_text(encoding="utf-8").splitlines() if line.strip()]
    if not lines:
        return [ValidationIssue(where, "history", "History must contain at least one event")]

    current_status = None
    last_ts = None
    for line in lines:
        try:
            event = json.loads(line)
        except json.JSONDecodeError as e:
            errors.append(ValidationIssue(where, "history", f"Invalid JSON entry: {e}"))
            continue
        if not isinstance(event, dict):
            errors.append(ValidationIssue(where, "history", "History entry must be a JSON object"))
            continue

        ts = parse_timestamp(event.get("ts"))
        if ts is None:
            errors.append(ValidationIssue(where, "history", "History event missing valid timestamp"))
        else:
            last_ts = ts if last_ts is None else max(last_ts, ts)

        op = _string(event, "op")
        if not op:
            errors.append(ValidationIssue(where, "history", "History event missing op"))
            continue

        if op == "create":
            current_status = _status_value(event.get("to")) or current_status
        elif op == "status":
            declared_from = _status_value(event.get("from"))
            from_status = declared_from or current_status
            to_status = _status_value(event.get("to"))
            if not to_status:
                errors.append(ValidationIssue(where, "history", "Status event missing target status"))
                continue
            if declared_from and current_status and declared_from != current_status:
                errors.append(ValidationIssue(
                    where, "transition",
                    f"History from status {declared_from} does not match current status {current_status}",
                ))
            if from_status and to_status not in (allowed.get(from_status) or []):
                errors.append(ValidationIssue(
                    where, "transition",
                    f"Transition {from_status} -> {to_status} not allowed for {ticket.type}",
                ))
            current_status = to_status

    ticket_status = _string(ticket.data, "status")
    if current_status and ticket_status and current_status != ticket_status:
        errors.append(ValidationIssue(
            ticket.path, "history",
            f"Ticket status {ticket_status} does not match last history status {current_status}",
        ))

    updated_at = parse_timestamp(ticket.data.get("updated_at"))
    if updated_at and last_ts and last_ts + HISTORY_UPDATE_TOLERANCE < updated_at:
        errors.append(ValidationIssue(where, "history", "History not updated after ticket change"))
    return errors


def _check_story_completion(ctx: _Context) -> list[ValidationIssue]:
    errors = []
    children: dict[str, list[TicketInfo]] = {}
    bugs: dict[str, list[TicketInfo]] = {}
    for ticket in ctx.tickets:
        parent_id = _string(ticket.data, "parent_id")
        if parent_id:
            (bugs if ticket.type == "bug" else children).setdefault(parent_id, []).append(ticket)

    for story in ctx.tickets:
        if story.type != "story" or _string(story.data, "status") != "Done":
            continue
        for child in children.get(story.id, []):
            status = _string(child.data, "status")
            if status and status != "Done":
                errors.append(ValidationIssue(
                    story.path, "completion", f"Story cannot be Done while subtask {child.id} is {status}"
                ))
        for bug in bugs.get(story.id, []):
            status = _string(bug.data, "status")
            if status and status not in ("Done", "Canceled"):
                errors.append(ValidationIssue(
                    story.path, "completion", f"Story cannot be Done while bug {bug.id} is {status}"
                ))
    return errors


def _check_scopes(ctx: _Context) -> list[ValidationIssue]:
    errors = []
    for scope in ctx.sprint_scopes.values():
        for bucket, expected in SCOPE_BUCKET_TYPES.items():
            for ticket_id in _strings(scope.data, bucket):
                ticket = ctx.ticket_by_id.get(ticket_id)
                if ticket is None:
                    errors.append(ValidationIssue(
                        scope.path, "scope", f"{bucket} references unknown ticket {ticket_id}"
                    ))
                elif ticket.type != expected:
                    errors.append(ValidationIssue(
                        scope.path, "scope", f"{bucket} expects {expected} but {ticket_id} is {ticket.type}"
                    ))
    return errors


def _check_queues(ctx: _Context) -> list[ValidationIssue]:
    errors = []
    for ticket_id in ctx.backlog.ids:
        if ticket_id not in ctx.ticket_by_id:
            errors.append(ValidationIssue(
                ctx.backlog.path, "backlog", f"Backlog references unknown ticket {ticket_id}"
            ))
    for ticket_id in ctx.next_sprint.ids:
        if ticket_id not in ctx.ticket_by_id:
            errors.append(ValidationIssue(
                ctx.next_sprint.path, "backlog", f"Next sprint candidates reference unknown ticket {ticket_id}"
            ))
    return errors


TICKET_CHECKS = (
    _check_location,
    _check_components,
    _check_people,
    _check_parent,
    _check_sprint,
    _check_due_dates,
    _check_code,
    _check_history,
)


def validate_workspace(
    config: CliConfig | None = None,
    target: str | None = None,
) -> WorkspaceValidationResult:
    """
    Validate the workspace (or a single target file).

    Args:
        config: Workspace config; discovered from the working directory if omitted
        target: Optional file path, relative to the workspace root

    Returns:
        WorkspaceValidationResult with every violation found
    """
    config = config or load_config()
    registry = get_schema_registry(config.tracking.schema_dir)
    inventory = collect_workspace_inventory(config, target=target)

    errors = []
    for issue in inventory.issues:
        rule = issue.kind if issue.kind in ("parse", "schema") else "io"
        errors.append(ValidationIssue(issue.file, rule, issue.message))

    for document in inventory.documents:
        key = infer_schema_key(document.kind, document.data)
        if key and registry.has_schema(key):
            result = registry.validate(key, document.data)
            for issue in result.errors:
                errors.append(ValidationIssue(
                    document.relative_path, "schema", f"{issue.path} {issue.message}",
                    details={"keyword": issue.keyword},
                ))
        elif key:
            logger.warning(f"No schema registered for {key}; skipping {document.relative_path}")

        data = document.data
        if isinstance(data, dict) and "generated_by" in data and not has_valid_signature(data):
            errors.append(ValidationIssue(
                document.relative_path, "signature", "generated_by must start with houston@"
            ))

    ctx = _build_context(inventory, errors)
    for ticket in ctx.tickets:
        for check in TICKET_CHECKS:
            errors.extend(check(ticket, ctx))
    errors.extend(_check_story_completion(ctx))
    errors.extend(_check_scopes(ctx))
    errors.extend(_check_queues(ctx))

    logger.debug(f"Validated {len(inventory.checked_files)} file(s): {len(errors)} issue(s)")
    return WorkspaceValidationResult(checked_files=list(inventory.checked_files), errors=errors)
