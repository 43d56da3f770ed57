"""Provenance signatures stamped on persisted YAML records."""

from houston.lib.constants import GENERATOR_PREFIX


def ensure_signature(data: dict, generator: str) -> dict:
    """Stamp generated_by on data in place and return it."""
    if not isinstance(data, dict):
        raise TypeError("Cannot sign non-mapping payloads")
    data["generated_by"] = generator
    return data


def has_valid_signature(value, prefix: str = GENERATOR_PREFIX) -> bool:
    """Check that value is a mapping whose generated_by starts with prefix."""
    if not isinstance(value, dict):
        return False
    signature = value.get("generated_by")
    return isinstance(signature, str) and signature.startswith(prefix)
