"""
houston info - Summarize the workspace.
"""

import json

from houston.lib.config import CliConfig
from houston.lib.log import configure_logging
from houston.workspace.info import get_workspace_snapshot


def cmd_info(config: CliConfig, as_json: bool = False) -> int:
    """Print the workspace snapshot as JSON or a short text summary."""
    configure_logging()
    snapshot = get_workspace_snapshot(config)

    if as_json:
        print(json.dumps(snapshot, indent=2, ensure_ascii=False))
        return 0

    workspace = snapshot["workspace"]
    summary = snapshot["summary"]
    print(f"Workspace:      {workspace['workspace_root']}")
    print(f"Tracking root:  {workspace['tracking_root']}")
    print()
    counts = ", ".join(f"{n} {t}" for t, n in summary["ticket_type_counts"].items())
    print(f"Tickets:        {summary['total_tickets']} ({counts})")
    print(f"Backlog:        {summary['backlog_count']}")
    print(f"Next sprint:    {summary['next_sprint_count']}")
    print(f"Repos:          {summary['repo_count']}")
    print(f"Components:     {summary['component_count']}")
    print(f"Labels:         {summary['label_count']}")
    print(f"People:         {summary['user_count']}")

    for status in ("active", "upcoming"):
        sprints = snapshot["sprints"][status]
        if sprints:
            print()
            print(f"{status.capitalize()} sprints:")
            for sprint in sprints:
                print(f"  {sprint['pretty']}")

    missing = snapshot["backlog"]["missing"] + snapshot["next_sprint"]["missing"]
    if missing:
        print()
        print(f"WARNING: {len(missing)} queued ticket(s) not found: {', '.join(missing)}")
    return 0
