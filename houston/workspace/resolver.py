"""
Ticket id resolution.

Users may refer to tickets by canonical id (ST-<uuid>) or by short id
(ST-<first 8 hex chars>). Short ids are matched against a workspace
inventory, which is collected at most once per batch.
"""

from dataclasses import dataclass

from houston.lib.errors import AmbiguousIdError, NotFoundError, UnrecognizedIdError
from houston.lib.ids import is_short_ticket_id, is_ticket_id, shorten_ticket_id
from houston.workspace.inventory import WorkspaceInventory, collect_workspace_inventory


@dataclass
class TicketIdResolution:
    id: str
    inventory: WorkspaceInventory | None = None


def resolve_ticket_id(
    config,
    value: str,
    inventory: WorkspaceInventory | None = None,
    allow_short: bool = True,
) -> TicketIdResolution:
    """
    Resolve a canonical or short ticket id to its canonical form.

    Canonical ids are returned unchanged without touching the workspace.

    Returns:
        TicketIdResolution carrying the id and the inventory that was used
        (collected here if one was needed and not supplied)

    Raises:
        UnrecognizedIdError: If value is neither a canonical nor a short id
        NotFoundError: If no ticket matches a short id
        AmbiguousIdError: If several tickets match a short id
    """
    text = (value or "").strip()
    if not text:
        raise UnrecognizedIdError("Ticket id is required")

    if is_ticket_id(text):
        return TicketIdResolution(id=text, inventory=inventory)

    if allow_short and is_short_ticket_id(text):
        if inventory is None:
            inventory = collect_workspace_inventory(config)
        matches = sorted({t.id for t in inventory.tickets if is_ticket_id(t.id) and shorten_ticket_id(t.id) == text})
        if not matches:
            raise NotFoundError(f"No ticket found matching short id {text}")
        if len(matches) > 1:
            raise AmbiguousIdError(text, matches)
        return TicketIdResolution(id=matches[0], inventory=inventory)

    raise UnrecognizedIdError(f"Ticket id {text} must be in canonical PREFIX-uuid format")


def resolve_ticket_ids(
    config,
    values: list[str],
    inventory: WorkspaceInventory | None = None,
    allow_short: bool = True,
) -> tuple[list[str], WorkspaceInventory | None]:
    """Resolve a batch of ids, sharing one inventory across the batch."""
    ids = []
    for value in values:
        result = resolve_ticket_id(config, value, inventory=inventory, allow_short=allow_short)
        inventory = result.inventory or inventory
        ids.append(result.id)
    return ids, inventory
