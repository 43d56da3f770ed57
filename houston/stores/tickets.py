"""
Ticket record store.

Tickets live at tickets/<TYPE_DIR>/<id>/ticket.yaml next to description.md
and the append-only history.ndjson. Every save re-stamps provenance and
bumps the version; there is no locking, so the last write wins.
"""

import logging
from dataclasses import dataclass, field, fields

from houston.lib.errors import HoustonError, NotFoundError
from houston.lib.history import append_history_event, now_iso
from houston.lib.ids import TicketType, assert_ticket_id_matches_type
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.signature import ensure_signature
from houston.lib.yamlio import read_yaml, write_text_atomic, write_yaml_atomic
from houston.stores.paths import resolve_ticket_paths

logger = logging.getLogger(__name__)

# Core fields in the order they are declared on TicketRecord
_CORE_FIELDS = (
    "id", "type", "status", "assignee", "components", "labels", "sprint_id",
    "summary", "title", "version", "created_at", "updated_at", "generated_by",
)


@dataclass
class TicketRecord:
    """
    A ticket: typed core fields plus every other field in `extra`.

    Fields that are not part of the core are carried through load and save
    untouched. A core field that is absent on disk stays absent when
    written back; an explicit null stays null.
    """
    id: str
    type: str
    status: str | None = None
    assignee: str | None = None
    components: list[str] | None = None
    labels: list[str] | None = None
    sprint_id: str | None = None
    summary: str | None = None
    title: str | None = None
    version: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    generated_by: str | None = None
    extra: dict = field(default_factory=dict)
    explicit_nulls: set = field(default_factory=set, repr=False, compare=False)

    @property
    def ticket_type(self) -> TicketType | None:
        try:
            return TicketType(self.type)
        except ValueError:
            return None

    @property
    def repo_ids(self) -> list[str]:
        """Repo ids declared under code.repos[].repo_id."""
        code = self.extra.get("code")
        if not isinstance(code, dict) or not isinstance(code.get("repos"), list):
            return []
        return [
            entry["repo_id"]
            for entry in code["repos"]
            if isinstance(entry, dict) and isinstance(entry.get("repo_id"), str)
        ]

    @classmethod
    def from_dict(cls, data: dict) -> "TicketRecord":
        if not isinstance(data, dict):
            raise HoustonError("Ticket document must be a mapping")
        if not isinstance(data.get("id"), str) or not isinstance(data.get("type"), str):
            raise HoustonError("Ticket document must have string id and type fields")
        core = {name: data[name] for name in _CORE_FIELDS if name in data}
        nulls = {name for name, value in core.items() if value is None}
        extra = {key: value for key, value in data.items() if key not in _CORE_FIELDS}
        return cls(**core, extra=extra, explicit_nulls=nulls)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        for f in fields(self):
            if f.name not in _CORE_FIELDS:
                continue
            value = getattr(self, f.name)
            if value is not None or f.name in self.explicit_nulls:
                data[f.name] = value
        return data


def _normalize_events(history) -> list[dict]:
    if history is None:
        return []
    if isinstance(history, dict):
        return [history]
    return list(history)


def ticket_exists(config, ticket_id: str) -> bool:
    return resolve_ticket_paths(config, ticket_id).ticket_file.exists()


def load_ticket(config, ticket_id: str) -> TicketRecord:
    """
    Load a ticket by canonical id.

    Raises:
        NotFoundError: If ticket.yaml does not exist
        UnrecognizedIdError: If the id prefix is unknown
    """
    paths = resolve_ticket_paths(config, ticket_id)
    if not paths.ticket_file.exists():
        raise NotFoundError(f"Ticket {ticket_id} not found")
    return TicketRecord.from_dict(read_yaml(paths.ticket_file))


def save_ticket(
    config,
    record: TicketRecord,
    tracker: MutationTracker,
    *,
    actor: str,
    history: dict | list[dict] | None = None,
    increment_version: bool = True,
) -> TicketRecord:
    """
    Persist an existing ticket.

    created_at is carried over from the file on disk, updated_at is set to
    now, version is incremented (or kept when increment_version is False)
    and generated_by is re-stamped. Each history event is appended to the
    ticket's history log with `actor` filled in when the event has none.

    Args:
        config: Workspace config
        record: Ticket to write; updated in place
        tracker: Records the `tickets` change type
        actor: Default actor for history events (e.g. "user:alice")
        history: One event or a list of events ({"op": ..., ...detail})
        increment_version: Bump version by one

    Returns:
        The written record

    Raises:
        NotFoundError: If the ticket does not exist yet
    """
    paths = resolve_ticket_paths(config, record.id)
    if not paths.ticket_file.exists():
        raise NotFoundError(f"Ticket {record.id} not found")

    current = read_yaml(paths.ticket_file)
    current = current if isinstance(current, dict) else {}
    current_version = current.get("version")

    record.created_at = current.get("created_at")
    record.updated_at = now_iso()
    if increment_version:
        record.version = (current_version or 0) + 1
    else:
        record.version = current_version or 1
    record.generated_by = config.metadata.generator

    write_yaml_atomic(paths.ticket_file, record.to_dict())

    for event in _normalize_events(history):
        append_history_event(paths.history_file, {**event, "actor": event.get("actor") or actor})

    tracker.record(ChangeType.TICKETS)
    logger.debug(f"Saved {record.id} (version {record.version})")
    return record


def create_ticket(
    config,
    record: TicketRecord,
    tracker: MutationTracker,
    *,
    history_events: list[dict],
) -> TicketRecord:
    """
    Materialize a new ticket directory.

    Writes ticket.yaml (signed), a description.md stub if none exists, and
    history.ndjson with each creation event. Every event must name its actor.

    Raises:
        UnrecognizedIdError: If the id is not canonical or its prefix does
            not match the record's type
        HoustonError: If a history event has no actor
    """
    assert_ticket_id_matches_type(record.id, record.type)
    for event in history_events:
        if not event.get("actor"):
            raise HoustonError("History event for ticket creation must include actor")

    paths = resolve_ticket_paths(config, record.id)
    paths.dir.mkdir(parents=True, exist_ok=True)
    if not paths.description_file.exists():
        write_text_atomic(
            paths.description_file,
            f"# {record.title}\n\nProvide details for {record.id}.\n",
        )

    data = ensure_signature(record.to_dict(), config.metadata.generator)
    record.generated_by = data["generated_by"]
    write_yaml_atomic(paths.ticket_file, data)

    paths.history_file.touch(exist_ok=True)
    for event in history_events:
        append_history_event(paths.history_file, event)

    tracker.record(ChangeType.TICKETS)
    logger.debug(f"Created {record.id}")
    return record
