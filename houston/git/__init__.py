"""Git plumbing behind workspace sync.

Helpers never raise on a failed git command:
- stage_path(), commit(), pull() and push() return a GitResult; check .success.
- is_git_repo(), is_clean(), has_upstream() and has_remote() return False on failure.
- get_current_branch() and get_toplevel() return None; get_changed_files() returns [].
"""

from houston.git.runner import GitResult, run_git
from houston.git.status import get_changed_files, get_toplevel, is_clean, is_git_repo
from houston.git.commit import commit, get_staged_files, stage_path
from houston.git.remote import (
    get_current_branch,
    has_remote,
    has_upstream,
    pull,
    push,
    push_set_upstream,
)

__all__ = [
    "GitResult",
    "run_git",
    "is_git_repo",
    "get_toplevel",
    "is_clean",
    "get_changed_files",
    "stage_path",
    "get_staged_files",
    "commit",
    "get_current_branch",
    "has_upstream",
    "has_remote",
    "pull",
    "push",
    "push_set_upstream",
]
