"""Branch tracking and remote exchange for the tracking repository."""

from pathlib import Path

from houston.git.runner import GitResult, run_git


def get_current_branch(repo: Path) -> str | None:
    """Name of the checked-out branch; None on a detached HEAD or failure."""
    result = run_git(["branch", "--show-current"], repo)
    return (result.stdout.strip() or None) if result.success else None


def has_upstream(repo: Path) -> bool:
    return run_git(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], repo).success


def has_remote(repo: Path, name: str = "origin") -> bool:
    result = run_git(["remote"], repo)
    return result.success and name in result.lines()


def pull(repo: Path, rebase: bool = True) -> GitResult:
    return run_git(["pull", "--rebase"] if rebase else ["pull"], repo)


def push(repo: Path) -> GitResult:
    """Push the current branch to its upstream."""
    return run_git(["push"], repo)


def push_set_upstream(repo: Path, remote: str, branch: str) -> GitResult:
    """First push of a branch: push and record `remote/branch` as its upstream."""
    return run_git(["push", "-u", remote, branch], repo)
