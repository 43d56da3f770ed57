"""Component and label taxonomies (taxonomies/*.yaml).

Both are flat, deduplicated, sorted lists of strings.
"""

from pathlib import Path

from houston.lib.constants import COMPONENTS_FILE, LABELS_FILE
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.yamlio import read_yaml_if_exists, write_yaml_atomic


def _load_values(path: Path, key: str) -> list[str]:
    data = read_yaml_if_exists(path, {})
    raw = data.get(key) if isinstance(data, dict) else None
    if not isinstance(raw, list):
        return []
    return [v for v in raw if isinstance(v, str) and v.strip()]


def _write_values(path: Path, key: str, values) -> list[str]:
    merged = sorted({v.strip() for v in values if isinstance(v, str) and v.strip()})
    write_yaml_atomic(path, {key: merged})
    return merged


def components_path(config) -> Path:
    return Path(config.tracking.root) / COMPONENTS_FILE


def labels_path(config) -> Path:
    return Path(config.tracking.root) / LABELS_FILE


def load_components(config) -> list[str]:
    return _load_values(components_path(config), "components")


def add_component(config, component: str, tracker: MutationTracker) -> list[str]:
    result = _write_values(components_path(config), "components", [*load_components(config), component])
    tracker.record(ChangeType.COMPONENTS)
    return result


def component_exists(config, component: str) -> bool:
    return component in load_components(config)


def load_labels(config) -> list[str]:
    return _load_values(labels_path(config), "labels")


def add_labels(config, labels: list[str], tracker: MutationTracker) -> list[str]:
    result = _write_values(labels_path(config), "labels", [*load_labels(config), *labels])
    tracker.record(ChangeType.LABELS)
    return result


def label_exists(config, label: str) -> bool:
    return label in load_labels(config)
