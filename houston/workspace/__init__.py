"""Read side of the workspace: inventory, analytics, snapshot, validation."""

from houston.workspace.analytics import build_workspace_analytics
from houston.workspace.info import get_workspace_snapshot
from houston.workspace.inventory import collect_workspace_inventory
from houston.workspace.resolver import resolve_ticket_id, resolve_ticket_ids
from houston.workspace.validator import validate_workspace

__all__ = [
    "build_workspace_analytics",
    "collect_workspace_inventory",
    "get_workspace_snapshot",
    "resolve_ticket_id",
    "resolve_ticket_ids",
    "validate_workspace",
]
