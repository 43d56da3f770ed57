"""Map canonical ticket ids to their on-disk locations."""

from dataclasses import dataclass
from pathlib import Path

from houston.lib.constants import DESCRIPTION_FILE, HISTORY_FILE, TICKET_FILE
from houston.lib.ids import require_ticket_type


@dataclass(frozen=True)
class TicketPaths:
    dir: Path
    ticket_file: Path
    description_file: Path
    history_file: Path


def resolve_ticket_paths(config, ticket_id: str) -> TicketPaths:
    """
    Resolve the files of a ticket from its id alone.

    The type directory comes from the id prefix (ST- -> tickets/STORY/...).
    No filesystem access happens here.

    Raises:
        UnrecognizedIdError: If the id prefix is not a known ticket type
    """
    ticket_type = require_ticket_type(ticket_id)
    ticket_dir = Path(config.tracking.tickets_dir) / ticket_type.directory / ticket_id
    return TicketPaths(
        dir=ticket_dir,
        ticket_file=ticket_dir / TICKET_FILE,
        description_file=ticket_dir / DESCRIPTION_FILE,
        history_file=ticket_dir / HISTORY_FILE,
    )
