"""Tests for the houston.git helpers."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from houston.git.commit import commit, get_staged_files
from houston.git.remote import get_current_branch, has_remote, pull
from houston.git.runner import GitResult, run_git
from houston.git.status import get_changed_files, get_toplevel, is_clean


class TestGitResult:
    def test_success_follows_returncode(self):
        assert GitResult(0).success
        assert not GitResult(1, "", "fatal").success

    def test_output_prefers_stderr(self):
        assert GitResult(1, "out", " fatal: nope \n").output == "fatal: nope"
        assert GitResult(1, "out\n", "").output == "out"

    def test_lines_skip_blanks(self):
        assert GitResult(0, "a\n\n  b \n").lines() == ["a", "b"]


class TestRunGit:
    @patch("houston.git.runner.subprocess.run")
    def test_runs_in_cwd_with_C_flag(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="x\n", stderr="")
        result = run_git(["status", "--porcelain"], Path("/my/repo"))
        assert mock_run.call_args[0][0] == ["git", "-C", "/my/repo", "status", "--porcelain"]
        assert result.stdout == "x\n"
        assert result.args == ["status", "--porcelain"]

    @patch("houston.git.runner.subprocess.run")
    def test_missing_git_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("git")
        result = run_git(["status"], Path("/tmp"))
        assert result.returncode == 127
        assert not result.success


class TestStatusHelpers:
    @patch("houston.git.status.run_git")
    def test_changed_files_handles_renames(self, mock_git):
        mock_git.return_value = GitResult(
            0, " M tickets/a.yaml\0R  backlog/new.yaml\0backlog/old.yaml\0?? file with space.md\0", ""
        )
        files = get_changed_files(Path("/repo"), "/repo/tracking")
        assert files == ["tickets/a.yaml", "backlog/new.yaml", "file with space.md"]
        assert mock_git.call_args[0][0] == ["status", "--porcelain", "-z", "--", "/repo/tracking"]

    @patch("houston.git.status.run_git")
    def test_changed_files_empty_on_failure(self, mock_git):
        mock_git.return_value = GitResult(128, "", "not a git repository")
        assert get_changed_files(Path("/repo")) == []

    @patch("houston.git.status.run_git")
    def test_failed_status_is_not_clean(self, mock_git):
        mock_git.return_value = GitResult(128, "", "fatal")
        assert is_clean(Path("/repo")) is False

    @patch("houston.git.status.run_git")
    def test_toplevel(self, mock_git):
        mock_git.return_value = GitResult(0, "/repo\n")
        assert get_toplevel(Path("/repo/tracking")) == Path("/repo")
        mock_git.return_value = GitResult(128, "", "fatal")
        assert get_toplevel(Path("/elsewhere")) is None


class TestRemoteHelpers:
    @pytest.mark.parametrize("stdout,expected", [("origin\nupstream\n", True), ("upstream\n", False)])
    @patch("houston.git.remote.run_git")
    def test_has_remote(self, mock_git, stdout, expected):
        mock_git.return_value = GitResult(0, stdout, "")
        assert has_remote(Path("/repo"), "origin") is expected

    @patch("houston.git.remote.run_git")
    def test_detached_head_has_no_branch(self, mock_git):
        mock_git.return_value = GitResult(0, "\n")
        assert get_current_branch(Path("/repo")) is None

    @pytest.mark.parametrize("rebase,args", [(True, ["pull", "--rebase"]), (False, ["pull"])])
    @patch("houston.git.remote.run_git")
    def test_pull_args(self, mock_git, rebase, args):
        pull(Path("/repo"), rebase=rebase)
        assert mock_git.call_args[0][0] == args


class TestCommitHelpers:
    @patch("houston.git.commit.run_git")
    def test_staged_files(self, mock_git):
        mock_git.return_value = GitResult(0, "tracking/a.yaml\ntracking/b.yaml\n")
        assert get_staged_files(Path("/repo")) == ["tracking/a.yaml", "tracking/b.yaml"]
        mock_git.return_value = GitResult(128, "", "fatal")
        assert get_staged_files(Path("/repo")) is None

    @patch("houston.git.commit.run_git")
    def test_staged_files_limited_to_path(self, mock_git):
        mock_git.return_value = GitResult(0, "")
        assert get_staged_files(Path("/repo"), Path("/repo/tracking")) == []
        assert mock_git.call_args[0][0] == ["diff", "--cached", "--name-only", "--", "/repo/tracking"]

    @patch("houston.git.commit.run_git")
    def test_commit_limited_to_path(self, mock_git):
        commit(Path("/repo"), "msg", Path("/repo/tracking"))
        assert mock_git.call_args[0][0] == ["commit", "-m", "msg", "--", "/repo/tracking"]
        commit(Path("/repo"), "msg")
        assert mock_git.call_args[0][0] == ["commit", "-m", "msg"]
