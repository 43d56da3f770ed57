"""Staging and committing the tracking root."""

from pathlib import Path

from houston.git.runner import GitResult, run_git


def stage_path(repo: Path, path: Path | str) -> GitResult:
    """`git add -A` limited to one path, so deletions are staged too."""
    return run_git(["add", "-A", "--", str(path)], repo)


def get_staged_files(repo: Path, path: Path | str | None = None) -> list[str] | None:
    """
    Paths in the index that differ from HEAD, optionally only under path.
    None if git could not tell.
    """
    args = ["diff", "--cached", "--name-only"]
    if path is not None:
        args += ["--", str(path)]
    result = run_git(args, repo)
    return result.lines() if result.success else None


def commit(repo: Path, message: str, path: Path | str | None = None) -> GitResult:
    """Commit the index, or only the changes under path when one is given."""
    args = ["commit", "-m", message]
    if path is not None:
        args += ["--", str(path)]
    return run_git(args, repo)
