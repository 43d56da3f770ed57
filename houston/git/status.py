"""Working tree inspection used to decide whether to pull and what changed."""

from pathlib import Path

from houston.git.runner import run_git


def is_git_repo(path: Path) -> bool:
    return run_git(["rev-parse", "--git-dir"], path).success


def get_toplevel(path: Path) -> Path | None:
    """Root of the working tree containing path, or None outside a repo."""
    result = run_git(["rev-parse", "--show-toplevel"], path)
    top = result.stdout.strip()
    return Path(top) if result.success and top else None


def is_clean(repo: Path) -> bool:
    """True when nothing is staged, modified or untracked. A failed status is not clean."""
    result = run_git(["status", "--porcelain"], repo)
    return result.success and not result.lines()


def get_changed_files(repo: Path, pathspec: str | None = None) -> list[str]:
    """
    Paths (relative to the repository root) with staged, unstaged or
    untracked changes, optionally limited to a pathspec.

    Porcelain -z output is used so names with spaces survive. For renames
    and copies only the destination path is reported. Any git failure
    yields an empty list.
    """
    args = ["status", "--porcelain", "-z"]
    if pathspec:
        args += ["--", pathspec]
    result = run_git(args, repo)
    if not result.success:
        return []

    files = []
    entries = iter(result.stdout.split("\0"))
    for entry in entries:
        if len(entry) < 4:
            continue
        code, name = entry[:2], entry[3:]
        files.append(name)
        if code[0] in ("R", "C"):
            # rename/copy source follows as its own entry
            next(entries, None)
    return files
