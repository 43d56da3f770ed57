"""
Thin wrapper around the git binary.

Every helper in houston.git goes through run_git, so a failing command
comes back as a GitResult rather than an exception. The sync layer decides
which failures become warnings.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_NOT_FOUND = 127


@dataclass
class GitResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""
    args: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stderr when git wrote any, else stdout; used in warning text."""
        return self.stderr.strip() or self.stdout.strip()

    def lines(self) -> list[str]:
        """Non-empty stdout lines, stripped."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


def run_git(args: list[str], cwd: Path) -> GitResult:
    """
    Run `git -C <cwd> <args>` to completion and capture its output.

    A missing git binary is returned as a failed result with exit code 127,
    the same code a shell would report.
    """
    cmd = ["git", "-C", str(cwd), *args]
    logger.debug(f"Running {' '.join(cmd)}")
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        return GitResult(GIT_NOT_FOUND, "", str(e), list(args))
    return GitResult(completed.returncode, completed.stdout or "", completed.stderr or "", list(args))
