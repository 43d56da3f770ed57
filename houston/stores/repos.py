"""
Registered code repositories (repos/repos.yaml).
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from houston.lib.constants import (
    BRANCH_PREFIX_PATTERN,
    REPO_ID_PATTERN,
    REPO_PROVIDERS,
    REPOS_FILE,
)
from houston.lib.errors import NotFoundError
from houston.lib.ids import TicketType
from houston.lib.mutations import ChangeType, MutationTracker
from houston.lib.yamlio import read_yaml_if_exists, write_yaml_atomic

SSH_REMOTE = re.compile(r'^git@([^:]+):([^/]+)/(.+)\.git$')
HTTPS_REMOTE = re.compile(r'^https?://(?:[^@]+@)?([^/]+)/([^/]+)/(.+?)\.git$')


@dataclass
class RepoConfig:
    id: str
    provider: str
    default_branch: str | None = None
    remote: str | None = None
    branch_prefix: dict[str, str] | None = None
    extra: dict = field(default_factory=dict)  # pr, protections, ...

    _CORE = ("id", "provider", "default_branch", "remote", "branch_prefix")

    @classmethod
    def from_dict(cls, data: dict) -> "RepoConfig":
        return cls(
            id=data.get("id"),
            provider=data.get("provider"),
            default_branch=data.get("default_branch"),
            remote=data.get("remote"),
            branch_prefix=data.get("branch_prefix"),
            extra={k: v for k, v in data.items() if k not in cls._CORE},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        for name in self._CORE:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class ParsedRemote:
    host: str
    owner: str
    repo: str


def repos_path(config) -> Path:
    return Path(config.tracking.root) / REPOS_FILE


def parse_remote(remote: str) -> ParsedRemote | None:
    """Split an ssh or https git remote into host, owner and repo."""
    for pattern in (SSH_REMOTE, HTTPS_REMOTE):
        match = pattern.match(remote)
        if match:
            return ParsedRemote(host=match.group(1), owner=match.group(2), repo=match.group(3))
    return None


def load_repos(config) -> list[RepoConfig]:
    """Load configured repos; a missing file reads as no repos."""
    data = read_yaml_if_exists(repos_path(config), {})
    entries = data.get("repos") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        return []
    return [RepoConfig.from_dict(entry) for entry in entries if isinstance(entry, dict)]


def get_repo(config, repo_id: str) -> RepoConfig:
    for repo in load_repos(config):
        if repo.id == repo_id:
            return repo
    raise NotFoundError(f"Repo configuration {repo_id} not found")


def repo_id_exists(config, repo_id: str) -> bool:
    return any(repo.id == repo_id for repo in load_repos(config))


def upsert_repo(config, repo: RepoConfig, tracker: MutationTracker) -> list[RepoConfig]:
    """Insert or merge a repo by id; the file is kept sorted by id."""
    repos = load_repos(config)
    for index, existing in enumerate(repos):
        if existing.id == repo.id:
            repos[index] = RepoConfig.from_dict({**existing.to_dict(), **repo.to_dict()})
            break
    else:
        repos.append(repo)
    repos.sort(key=lambda r: r.id)
    write_yaml_atomic(repos_path(config), {"repos": [r.to_dict() for r in repos]})
    tracker.record(ChangeType.REPOS)
    return repos


def validate_repo_config(repo: RepoConfig) -> list[str]:
    """Check a repo entry before it is written; returns error messages."""
    errors = []
    if not repo.id or not REPO_ID_PATTERN.match(repo.id):
        errors.append(f"id must match {REPO_ID_PATTERN.pattern}")
    if repo.provider not in REPO_PROVIDERS:
        errors.append(f"provider must be one of: {', '.join(REPO_PROVIDERS)}")
    if repo.provider != "local":
        if not repo.remote or not isinstance(repo.remote, str):
            errors.append("remote is required")
        elif parse_remote(repo.remote) is None:
            errors.append("remote must look like git@host:owner/repo.git or https://host/owner/repo.git")
    if not repo.default_branch or not isinstance(repo.default_branch, str):
        errors.append("default_branch is required")
    if repo.branch_prefix is not None:
        for ticket_type in TicketType:
            value = repo.branch_prefix.get(ticket_type.value)
            if not value or not BRANCH_PREFIX_PATTERN.match(value):
                errors.append(
                    f"branch_prefix.{ticket_type.value} must match {BRANCH_PREFIX_PATTERN.pattern}"
                )
    return errors
