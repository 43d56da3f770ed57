"""
Mutation tracking for workspace commands.

A MutationTracker is a unit-of-work object: a command creates one, hands
it to every store call that writes, and reads the accumulated change
types once at the end to build the commit message.
"""

from enum import Enum


class ChangeType(str, Enum):
    """Coarse categories of workspace state a command can modify."""
    TICKETS = "tickets"
    BACKLOG = "backlog"
    SPRINTS = "sprints"
    REPOS = "repos"
    ROUTING = "routing"
    PEOPLE = "people"
    COMPONENTS = "components"
    LABELS = "labels"
    SCHEMA = "schema"
    TRANSITIONS = "transitions"


class MutationTracker:
    """Append-only set of change types recorded by store writes."""

    def __init__(self):
        self._recorded: set[ChangeType] = set()

    def record(self, change_type: ChangeType | str) -> None:
        self._recorded.add(ChangeType(change_type))

    def change_types(self) -> list[str]:
        """Recorded change types as sorted, deduplicated values."""
        return sorted(t.value for t in self._recorded)

    def clear(self) -> None:
        self._recorded.clear()

    def __bool__(self) -> bool:
        return bool(self._recorded)

    def __repr__(self) -> str:
        return f"MutationTracker({self.change_types()!r})"
