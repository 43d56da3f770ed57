"""
JSON Schema registry for workspace files.

Schemas are loaded from the workspace schema directory first and then from
the schemas bundled with the package. A bundled schema is skipped when the
workspace already provides one under the same relative key, so workspace
copies take precedence. All schemas share one referencing.Registry so that
relative $refs between them (e.g. ./ticket.base.schema.json) resolve.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import jsonschema
from jsonschema.validators import validator_for
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from houston.lib.constants import SCHEMA_SUFFIX
from houston.lib.errors import SchemaLoadError, UnknownSchemaError

logger = logging.getLogger(__name__)

BUNDLED_SCHEMA_DIR = Path(__file__).parent.parent / "schema"


@dataclass
class SchemaIssue:
    """A single schema violation."""
    path: str  # dotted instance path, "(root)" for the document itself
    message: str
    keyword: str | None = None


@dataclass
class SchemaValidationResult:
    valid: bool
    errors: list[SchemaIssue] = field(default_factory=list)


def _schema_key(relative: Path) -> str:
    return relative.as_posix()[: -len(SCHEMA_SUFFIX)]


class SchemaRegistry:
    """Compiled validators keyed by schema path relative to its directory."""

    def __init__(self, schema_dir: Path | None, bundled_dir: Path | None = BUNDLED_SCHEMA_DIR):
        self.schema_dir = Path(schema_dir) if schema_dir else None
        self.bundled_dir = Path(bundled_dir) if bundled_dir else None
        self._documents: dict[str, dict] = {}
        self._ids: dict[str, str] = {}  # $id -> key
        self._validators: dict[str, jsonschema.protocols.Validator] = {}

        for directory in (self.schema_dir, self.bundled_dir):
            if directory is not None and directory.is_dir():
                self._load_dir(directory)

        resources = []
        for key, document in self._documents.items():
            resource = Resource.from_contents(document, default_specification=DRAFT202012)
            resources.append((key, resource))
            schema_id = document.get("$id")
            if schema_id and self._ids.get(schema_id) == key:
                resources.append((schema_id, resource))
        self._registry = Registry().with_resources(resources)

        for key in self._documents:
            self._validators[key] = self._build_validator(key)
        logger.debug(f"Loaded {len(self._validators)} schema(s)")

    def _load_dir(self, directory: Path) -> None:
        for path in sorted(directory.rglob(f"*{SCHEMA_SUFFIX}")):
            if not path.is_file():
                continue
            key = _schema_key(path.relative_to(directory))
            if key in self._documents:
                continue
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise SchemaLoadError(f"Failed to parse schema {path}: {e}") from e
            if not isinstance(document, dict):
                raise SchemaLoadError(f"Schema {path} is not a JSON object")
            self._documents[key] = document
            schema_id = document.get("$id")
            if schema_id:
                self._ids.setdefault(schema_id, key)

    def _build_validator(self, key: str):
        # Prefer the registered resource for the key, then the one for the
        # declared $id, then compile the raw document.
        document = self._documents[key]
        contents = None
        if key in self._registry:
            contents = self._registry[key].contents
        elif document.get("$id") in self._registry:
            contents = self._registry[document["$id"]].contents
        if contents is None:
            contents = document

        cls = validator_for(contents, default=jsonschema.Draft202012Validator)
        return cls(contents, registry=self._registry, format_checker=cls.FORMAT_CHECKER)

    def validate(self, key: str, data) -> SchemaValidationResult:
        """
        Validate data against the schema registered under key.

        Raises:
            UnknownSchemaError: If no schema was loaded under key
        """
        validator = self._validators.get(key)
        if validator is None:
            raise UnknownSchemaError(key)

        errors = []
        for error in validator.iter_errors(data):
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            errors.append(SchemaIssue(path=path, message=error.message, keyword=error.validator))
        errors.sort(key=lambda e: (e.path, e.message))
        return SchemaValidationResult(valid=not errors, errors=errors)

    def has_schema(self, key: str) -> bool:
        return key in self._validators

    def list_schemas(self) -> list[str]:
        return sorted(self._validators)


_registry_cache: dict[tuple[str, str], SchemaRegistry] = {}


def get_schema_registry(schema_dir: Path) -> SchemaRegistry:
    """Get the registry for a schema directory, building it on first use."""
    cache_key = (str(Path(schema_dir).resolve()), str(BUNDLED_SCHEMA_DIR))
    if cache_key not in _registry_cache:
        _registry_cache[cache_key] = SchemaRegistry(schema_dir)
    return _registry_cache[cache_key]


def clear_registry_cache() -> None:
    _registry_cache.clear()
