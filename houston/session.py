"""
Command session: the envelope around every mutating command.

    with workspace_session(config, command_path="backlog add") as session:
        save_backlog(session.config, ids, session.tracker)

Before the body runs the workspace is pulled (when git.auto_pull is set);
after it completes normally the tracking root is committed and pushed
according to the git config. If the body raises, nothing is committed and
the exception propagates.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from houston.git.sync import (
    CommitOutcome,
    auto_commit_and_maybe_push,
    derive_change_types_from_status,
    pre_pull_if_needed,
)
from houston.lib.config import CliConfig
from houston.lib.mutations import MutationTracker

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceSession:
    config: CliConfig
    tracker: MutationTracker = field(default_factory=MutationTracker)
    outcome: CommitOutcome | None = None


@contextmanager
def workspace_session(config: CliConfig, command_path: str | None = None):
    """Pre-pull, yield a session with a fresh tracker, then commit and push."""
    session = WorkspaceSession(config=config)
    cwd = Path(config.tracking.root)
    git = config.git

    if git.auto_pull:
        pre_pull_if_needed(cwd, rebase=git.pull_rebase)

    yield session

    if not git.auto_commit:
        logger.debug("auto_commit disabled; leaving changes uncommitted")
        return

    change_types = session.tracker.change_types()
    if not change_types:
        change_types = derive_change_types_from_status(cwd, cwd)
    session.outcome = auto_commit_and_maybe_push(
        cwd,
        cwd,
        change_types,
        push_policy=git.auto_push,
        command_path=command_path,
    )
