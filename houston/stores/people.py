"""People directory (people/users.yaml)."""

from dataclasses import dataclass, field
from pathlib import Path

from houston.lib.constants import PEOPLE_FILE
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.yamlio import read_yaml_if_exists, write_yaml_atomic


@dataclass
class PersonRecord:
    id: str
    name: str | None = None
    email: str | None = None
    roles: list[str] = field(default_factory=list)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "PersonRecord":
        roles = data.get("roles")
        return cls(
            id=data["id"],
            name=data.get("name"),
            email=data.get("email"),
            roles=list(roles) if isinstance(roles, list) else [],
            extra={k: v for k, v in data.items() if k not in ("id", "name", "email", "roles")},
        )

    def to_dict(self) -> dict:
        data = {**self.extra, "id": self.id}
        if self.name is not None:
            data["name"] = self.name
        if self.email is not None:
            data["email"] = self.email
        if self.roles:
            data["roles"] = list(self.roles)
        return data


def people_path(config) -> Path:
    return Path(config.tracking.root) / PEOPLE_FILE


def load_people(config) -> list[PersonRecord]:
    data = read_yaml_if_exists(people_path(config), {})
    users = data.get("users") if isinstance(data, dict) else None
    if not isinstance(users, list):
        return []
    return [PersonRecord.from_dict(u) for u in users if isinstance(u, dict) and u.get("id")]


def upsert_person(config, person: PersonRecord, tracker: MutationTracker) -> list[PersonRecord]:
    """Insert or merge a person by id; the file is kept sorted by id."""
    people = load_people(config)
    for index, existing in enumerate(people):
        if existing.id == person.id:
            people[index] = PersonRecord.from_dict({**existing.to_dict(), **person.to_dict()})
            break
    else:
        people.append(person)
    people.sort(key=lambda p: p.id)
    write_yaml_atomic(people_path(config), {"users": [p.to_dict() for p in people]})
    tracker.record(ChangeType.PEOPLE)
    return people


def has_person(config, user_id: str) -> bool:
    return any(p.id == user_id for p in load_people(config))
