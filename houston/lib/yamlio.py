"""
YAML reading and atomic file writes.

Dates and timestamps are kept as plain strings on load so that records
round-trip unchanged and validate as JSON-schema strings.
"""

import os
import tempfile
from pathlib import Path

import yaml


class _StringDateLoader(yaml.SafeLoader):
    """SafeLoader without the implicit timestamp resolver."""


_StringDateLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_yaml(text: str):
    """Parse a YAML document. Raises yaml.YAMLError on malformed input."""
    return yaml.load(text, Loader=_StringDateLoader)


def read_yaml(path: Path):
    """Read and parse a YAML file."""
    return parse_yaml(Path(path).read_text(encoding="utf-8"))


def read_yaml_if_exists(path: Path, default=None):
    """Read a YAML file, returning default if it does not exist or is empty."""
    path = Path(path)
    if not path.exists():
        return default
    data = read_yaml(path)
    return default if data is None else data


def dump_yaml(data) -> str:
    """Serialize to key-sorted block-style YAML with a trailing newline."""
    text = yaml.safe_dump(
        data,
        sort_keys=True,
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    )
    return text if text.endswith("\n") else text + "\n"


def write_text_atomic(path: Path, text: str) -> None:
    """
    Write text to path via a temporary sibling file and os.replace.

    A reader never observes a partially written file. The temporary file
    is removed if the write fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def write_yaml_atomic(path: Path, data) -> None:
    write_text_atomic(path, dump_yaml(data))
