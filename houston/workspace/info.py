"""
Workspace snapshot read API.

get_workspace_snapshot returns one JSON-serializable dict describing the
workspace: paths, summary counts, sprints grouped by status, queue
resolution and repo usage. This is what the HTTP layer and web UI consume.
"""

from dataclasses import asdict
from datetime import date
from pathlib import Path

from houston.lib.config import CliConfig, load_config
from houston.workspace.analytics import (
    SPRINT_STATUSES,
    QueueOverview,
    SprintOverview,
    build_workspace_analytics,
)
from houston.workspace.inventory import collect_workspace_inventory


def format_sprint_window(start: str | None, end: str | None) -> str | None:
    if start and end:
        return f"{start} → {end}"
    return start or end or None


def format_sprint_pretty(sprint: SprintOverview) -> str:
    """Human label: "name (start → end)", falling back to name, window, id."""
    window = format_sprint_window(sprint.start_date, sprint.end_date)
    name = (sprint.name or "").strip()
    if name and window:
        return f"{name} ({window})"
    return name or window or sprint.id


def _minify_sprint(sprint: SprintOverview) -> dict:
    return {
        "id": sprint.id,
        "status": sprint.status,
        "start_date": sprint.start_date,
        "end_date": sprint.end_date,
        "name": sprint.name,
        "pretty": format_sprint_pretty(sprint),
    }


def _queue(queue: QueueOverview) -> dict:
    return {
        "path": queue.path,
        "ticket_ids": [t.id for t in queue.tickets],
        "missing": list(queue.missing),
    }


def get_workspace_snapshot(
    config: CliConfig | None = None,
    cwd: Path | None = None,
    today: date | None = None,
) -> dict:
    """
    Build the workspace snapshot.

    Args:
        config: Workspace config; discovered from cwd when omitted
        cwd: Starting directory for workspace discovery
        today: Reference date for sprint status

    Returns:
        Snapshot dict (JSON-serializable)
    """
    config = config or load_config(cwd)
    analytics = build_workspace_analytics(collect_workspace_inventory(config), today=today)

    sprints = {status: [] for status in SPRINT_STATUSES}
    for sprint in analytics.sprints:
        sprints[sprint.status].append(_minify_sprint(sprint))

    return {
        "workspace": {
            "workspace_root": str(config.workspace_root),
            "tracking_root": str(config.tracking.root),
            "schema_dir": str(config.tracking.schema_dir),
        },
        "summary": asdict(analytics.summary),
        "sprints": sprints,
        "backlog": _queue(analytics.backlog),
        "next_sprint": _queue(analytics.next_sprint),
        "repos": {
            "configured": [
                {
                    "id": usage.config.id,
                    "provider": usage.config.provider,
                    "remote": usage.config.remote,
                    "ticket_ids": [t.id for t in usage.tickets],
                }
                for usage in analytics.repo_usage
            ],
            "unknown_references": [t.id for t in analytics.unknown_repo_tickets],
        },
    }
