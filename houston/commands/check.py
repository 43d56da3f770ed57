"""
houston check - Validate the workspace.
"""

import json

from houston.lib.config import CliConfig
from houston.lib.log import configure_logging
from houston.workspace.validator import validate_workspace


def cmd_check(config: CliConfig, target: str | None = None, as_json: bool = False) -> int:
    """Validate the workspace or a single file. Returns 1 if any issue is found."""
    configure_logging()
    result = validate_workspace(config, target=target)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return 1 if result.errors else 0

    if not result.errors:
        print(f"All validations passed ({len(result.checked_files)} files checked).")
        return 0

    print("Validation failed:")
    for issue in result.errors:
        print(f"  - {issue}")
    print()
    print(f"{len(result.errors)} issue(s) in {len(result.checked_files)} checked file(s)")
    return 1
