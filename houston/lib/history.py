"""
Append-only ticket history logs.

Each event is one JSON object per line in history.ndjson. Lines are only
ever appended; existing content is never rewritten.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

__all__ = ["now_iso", "append_history_event", "read_history_events"]


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def append_history_event(path: Path, event: dict) -> dict:
    """
    Append one event to a history log.

    The event's ts is stamped with the current time if it has none.

    Args:
        path: history.ndjson file (created with its parent if missing)
        event: Event payload; expected to carry actor and op

    Returns:
        The event as written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {**event, "ts": event.get("ts") or now_iso()}
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(payload, ensure_ascii=False) + "\n")
    return payload


def read_history_events(path: Path) -> list[dict]:
    """Read all events from a history log; a missing file reads as empty."""
    path = Path(path)
    if not path.exists():
        return []
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]
