"""
Ticket id helpers.

Canonical ids are TYPE_PREFIX-UUID (lower-case hex), e.g.
ST-22222222-2222-2222-2222-222222222222. Short ids keep the prefix and the
first eight hex characters of the uuid: ST-22222222.
"""

import re
import uuid
from enum import Enum

from houston.lib.errors import UnrecognizedIdError


class TicketType(str, Enum):
    EPIC = "epic"
    STORY = "story"
    SUBTASK = "subtask"
    BUG = "bug"

    @property
    def prefix(self) -> str:
        return PREFIX_BY_TYPE[self]

    @property
    def directory(self) -> str:
        return DIRECTORY_BY_TYPE[self]


PREFIX_BY_TYPE = {
    TicketType.EPIC: "EPIC",
    TicketType.STORY: "ST",
    TicketType.SUBTASK: "SB",
    TicketType.BUG: "BG",
}

TYPE_BY_PREFIX = {prefix: ticket_type for ticket_type, prefix in PREFIX_BY_TYPE.items()}

DIRECTORY_BY_TYPE = {
    TicketType.EPIC: "EPIC",
    TicketType.STORY: "STORY",
    TicketType.SUBTASK: "SUBTASK",
    TicketType.BUG: "BUG",
}

_UUID = r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'
CANONICAL_TICKET_ID_PATTERN = re.compile(rf'^(EPIC|ST|SB|BG)-({_UUID})$')
SHORT_TICKET_ID_PATTERN = re.compile(r'^(EPIC|ST|SB|BG)-([0-9a-f]{8})$')


def generate_ticket_id(ticket_type: TicketType | str) -> str:
    """Generate a new canonical id for the given ticket type."""
    return f"{TicketType(ticket_type).prefix}-{uuid.uuid4()}"


def is_ticket_id(value: str) -> bool:
    """Check if value is a canonical ticket id."""
    return bool(CANONICAL_TICKET_ID_PATTERN.match(value))


def is_short_ticket_id(value: str) -> bool:
    return bool(SHORT_TICKET_ID_PATTERN.match(value))


def ticket_type_from_id(ticket_id: str) -> TicketType | None:
    """Derive the ticket type from the id prefix, or None if unknown.

    Only the prefix is inspected; the rest of the id is not validated.
    """
    prefix, sep, _ = ticket_id.partition("-")
    if not sep:
        return None
    return TYPE_BY_PREFIX.get(prefix)


def require_ticket_type(ticket_id: str) -> TicketType:
    """Like ticket_type_from_id, but raises for an unknown prefix."""
    ticket_type = ticket_type_from_id(ticket_id)
    if ticket_type is None:
        raise UnrecognizedIdError(f"Unrecognised ticket id {ticket_id}")
    return ticket_type


def shorten_ticket_id(ticket_id: str) -> str:
    """Shorten a canonical id to PREFIX-<first 8 hex chars>."""
    match = CANONICAL_TICKET_ID_PATTERN.match(ticket_id)
    if not match:
        raise UnrecognizedIdError(f"{ticket_id} is not a canonical ticket id")
    return f"{match.group(1)}-{match.group(2)[:8]}"


def assert_ticket_id_matches_type(ticket_id: str, ticket_type: TicketType | str) -> None:
    """Raise unless ticket_id is canonical and carries the prefix for ticket_type."""
    expected = TicketType(ticket_type)
    if not is_ticket_id(ticket_id):
        raise UnrecognizedIdError(f"{ticket_id} is not a canonical ticket id")
    if ticket_type_from_id(ticket_id) is not expected:
        raise UnrecognizedIdError(
            f"Ticket id {ticket_id} does not match expected prefix "
            f"{expected.prefix} for type {expected.value}"
        )
