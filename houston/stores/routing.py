"""Component to repository routing (repos/component-routing.yaml)."""

from dataclasses import dataclass, field
from pathlib import Path

from houston.lib.constants import ROUTING_FILE
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.yamlio import read_yaml_if_exists, write_yaml_atomic


@dataclass(frozen=True)
class ComponentRoute:
    repo_id: str
    path: str | None = None


@dataclass
class ComponentRouting:
    routes: dict[str, list[ComponentRoute]] = field(default_factory=dict)
    defaults: dict[str, list[ComponentRoute]] | None = None


def routing_path(config) -> Path:
    return Path(config.tracking.root) / ROUTING_FILE


def parse_route(raw: str) -> ComponentRoute | None:
    """Parse "repoId" or "repoId@path"; blank entries give None."""
    text = raw.strip()
    if not text:
        return None
    repo_id, sep, path = text.partition("@")
    if not sep:
        return ComponentRoute(repo_id=text)
    return ComponentRoute(repo_id=repo_id.strip(), path=path.strip() or None)


def _parse_routes(mapping) -> dict[str, list[ComponentRoute]]:
    parsed = {}
    for key, values in mapping.items():
        if not isinstance(values, list):
            continue
        routes = [parse_route(v) for v in values if isinstance(v, str)]
        parsed[key] = [r for r in routes if r is not None]
    return parsed


def parse_component_routing(data) -> ComponentRouting:
    if not isinstance(data, dict):
        return ComponentRouting()
    routes = _parse_routes(data["routes"]) if isinstance(data.get("routes"), dict) else {}
    defaults = _parse_routes(data["defaults"]) if isinstance(data.get("defaults"), dict) else None
    return ComponentRouting(routes=routes, defaults=defaults)


def load_component_routing(config) -> ComponentRouting:
    return parse_component_routing(read_yaml_if_exists(routing_path(config), {}))


def set_component_repos(config, component: str, repo_ids: list[str], tracker: MutationTracker) -> dict:
    """Route a component to repo ids; an empty list removes the route."""
    path = routing_path(config)
    data = read_yaml_if_exists(path, {})
    data = data if isinstance(data, dict) else {}
    routes = data.get("routes") if isinstance(data.get("routes"), dict) else {}
    if repo_ids:
        routes[component] = sorted(set(repo_ids))
    else:
        routes.pop(component, None)
    data["routes"] = routes
    write_yaml_atomic(path, data)
    tracker.record(ChangeType.ROUTING)
    return data
