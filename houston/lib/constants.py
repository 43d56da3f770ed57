"""Shared constants for the workspace engine."""

import re

GENERATOR_PREFIX = "houston@"

CONFIG_FILE_CANDIDATES = ("houston.config.yaml", "houston.config.yml")
CONFIG_PATH_ENV = "HOUSTON_CONFIG_PATH"
LOG_LEVEL_ENV = "HOUSTON_LOG_LEVEL"

# Per-ticket files
TICKET_FILE = "ticket.yaml"
DESCRIPTION_FILE = "description.md"
HISTORY_FILE = "history.ndjson"

# Tracking-root relative locations
BACKLOG_FILE = "backlog/backlog.yaml"
NEXT_SPRINT_FILE = "backlog/next-sprint-candidates.yaml"
SPRINT_FILE = "sprint.yaml"
SCOPE_FILE = "scope.yaml"
SPRINT_NOTES_FILE = "notes.md"
REPOS_FILE = "repos/repos.yaml"
ROUTING_FILE = "repos/component-routing.yaml"
COMPONENTS_FILE = "taxonomies/components.yaml"
LABELS_FILE = "taxonomies/labels.yaml"
PEOPLE_FILE = "people/users.yaml"
TRANSITIONS_FILE = "transitions.yaml"

SCHEMA_SUFFIX = ".schema.json"

SCOPE_BUCKETS = ("epics", "stories", "subtasks", "bugs")

TICKET_STATUSES = (
    "Backlog",
    "Planned",
    "Ready",
    "In Progress",
    "Blocked",
    "In Review",
    "Done",
    "Archived",
    "Canceled",
)

REPO_PROVIDERS = ("github", "gitlab", "bitbucket", "local")
REPO_ID_PATTERN = re.compile(r'^[a-z0-9][a-z0-9._-]*$')
BRANCH_PREFIX_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_-]*$')
