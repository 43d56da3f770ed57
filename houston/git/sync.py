"""
Keep the tracking root and git history in step.

Before a mutating command the workspace is pulled (when it is safe to do
so); afterwards everything under the tracking root is staged, committed
with a message built from the recorded change types, and pushed according
to the push policy. Every git failure is logged as a warning and never
affects the outcome of the command or rolls back a local commit.
"""

import logging
import os
import warnings
from dataclasses import dataclass
from pathlib import Path

from houston.git.commit import commit, get_staged_files, stage_path
from houston.git.remote import get_current_branch, has_remote, has_upstream, pull, push, push_set_upstream
from houston.git.status import get_changed_files, get_toplevel, is_clean, is_git_repo
from houston.lib.errors import GitOperationWarning
from houston.lib.mutations import ChangeType

logger = logging.getLogger(__name__)

COMMIT_SUBJECT_PREFIX = "houston: update"

# Path rules for classifying changes from git status. Prefix rules end in
# "/", all others are exact file matches.
CHANGE_TYPE_RULES = [
    ("tickets/", ChangeType.TICKETS),
    ("backlog/", ChangeType.BACKLOG),
    ("sprints/", ChangeType.SPRINTS),
    ("repos/repos.yaml", ChangeType.REPOS),
    ("repos/component-routing.yaml", ChangeType.ROUTING),
    ("people/users.yaml", ChangeType.PEOPLE),
    ("taxonomies/components.yaml", ChangeType.COMPONENTS),
    ("taxonomies/labels.yaml", ChangeType.LABELS),
    ("schema/", ChangeType.SCHEMA),
    ("transitions.yaml", ChangeType.TRANSITIONS),
]


@dataclass
class CommitOutcome:
    """What the post-command sync step actually did."""
    committed: bool = False
    pushed: bool = False
    message: str | None = None


def _warn(message: str) -> None:
    logger.warning(message)
    warnings.warn(message, GitOperationWarning, stacklevel=3)


def pre_pull_if_needed(cwd: Path, rebase: bool = True) -> bool:
    """
    Pull before a command mutates the workspace.

    Skips silently when cwd is not a git repo, has no upstream, or has
    uncommitted changes. A failed pull is logged as a warning.

    Returns:
        True if a pull ran and succeeded
    """
    if not is_git_repo(cwd):
        return False
    if not has_upstream(cwd):
        return False
    if not is_clean(cwd):
        logger.debug("Workspace has uncommitted changes; skipping pre-pull")
        return False

    result = pull(cwd, rebase=rebase)
    if not result.success:
        _warn(f"git pull failed: {result.output}")
        return False
    logger.debug("Pre-pull completed")
    return True


def build_commit_message(change_types: list[str], command_path: str | None = None) -> str:
    """
    Build the auto-commit message.

    Format:
        houston: update [backlog, tickets]

        cmd: ticket status

        Change-Types: backlog, tickets
    """
    types = sorted({ChangeType(t).value for t in change_types})
    listed = ", ".join(types) if types else "workspace"
    lines = [f"{COMMIT_SUBJECT_PREFIX} [{listed}]"]
    if command_path:
        lines += ["", f"cmd: {command_path}"]
    lines += ["", f"Change-Types: {listed}"]
    return "\n".join(lines)


def resolve_push_enabled(policy: bool | str, cwd: Path) -> bool:
    """Resolve the tri-state push policy: True, False, or "auto".

    "auto" pushes only when an upstream or an origin remote already exists.
    """
    if policy is True:
        return True
    if policy is False:
        return False
    if policy != "auto":
        raise ValueError(f"Invalid push policy {policy!r}; expected true, false or 'auto'")
    return has_upstream(cwd) or has_remote(cwd, "origin")


def auto_commit_and_maybe_push(
    cwd: Path,
    tracking_root: Path,
    change_types: list[str],
    push_policy: bool | str = "auto",
    command_path: str | None = None,
) -> CommitOutcome:
    """
    Commit everything under tracking_root and push according to policy.

    Only the tracking root is staged and committed; files staged elsewhere
    in the repository are left in the index. If nothing under the tracking
    root is staged, neither a commit nor a push happens. An invalid push
    policy is a warning and skips the push. A first push of a branch
    without upstream uses `push -u origin <branch>`.

    Args:
        cwd: Directory git runs in
        tracking_root: Directory whose changes are staged
        change_types: Change types for the commit message
        push_policy: True, False, or "auto"
        command_path: Optional command name for the `cmd:` line

    Returns:
        CommitOutcome describing what happened
    """
    outcome = CommitOutcome()
    if not is_git_repo(cwd):
        return outcome

    add = stage_path(cwd, tracking_root)
    if not add.success:
        _warn(f"git add failed: {add.output}")
        return outcome

    staged = get_staged_files(cwd, tracking_root)
    if not staged:
        logger.debug("Nothing staged under tracking root; skipping commit")
        return outcome

    message = build_commit_message(change_types, command_path)
    result = commit(cwd, message, tracking_root)
    if not result.success:
        _warn(f"git commit failed: {result.output}")
        return outcome
    outcome.committed = True
    outcome.message = message
    logger.debug(f"Committed {len(staged)} file(s): {message.splitlines()[0]}")

    try:
        push_enabled = resolve_push_enabled(push_policy, cwd)
    except ValueError as e:
        _warn(f"Not pushing: {e}")
        return outcome
    if not push_enabled:
        return outcome

    if has_upstream(cwd):
        pushed = push(cwd)
        if not pushed.success:
            _warn(f"git push failed: {pushed.output}")
            return outcome
        outcome.pushed = True
        return outcome

    if has_remote(cwd, "origin"):
        branch = get_current_branch(cwd) or "main"
        pushed = push_set_upstream(cwd, "origin", branch)
        if not pushed.success:
            _warn(f"git push -u failed: {pushed.output}")
            return outcome
        outcome.pushed = True

    return outcome


def classify_path(relative_path: str) -> ChangeType | None:
    """Map a tracking-root relative path to its change type."""
    normalized = relative_path.replace("\\", "/")
    for rule, change_type in CHANGE_TYPE_RULES:
        if rule.endswith("/"):
            if normalized.startswith(rule):
                return change_type
        elif normalized == rule:
            return change_type
    return None


def derive_change_types_from_status(tracking_root: Path, cwd: Path) -> list[str]:
    """
    Classify pending changes by diffing git's working-tree status.

    Fallback for commands that modified files without going through a
    store, so nothing was recorded on the mutation tracker.
    """
    if not is_git_repo(cwd):
        return []

    toplevel = get_toplevel(cwd) or Path(cwd)
    root_prefix = os.path.relpath(os.path.realpath(tracking_root), os.path.realpath(toplevel))
    root_prefix = "" if root_prefix == "." else root_prefix.replace(os.sep, "/") + "/"

    types = set()
    for path in get_changed_files(cwd, str(tracking_root)):
        if root_prefix:
            if not path.startswith(root_prefix):
                continue
            path = path[len(root_prefix):]
        change_type = classify_path(path)
        if change_type is not None:
            types.add(change_type.value)
    return sorted(types)
