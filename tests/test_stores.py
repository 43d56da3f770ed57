"""Tests for the queue, sprint, repo, routing, people and taxonomy stores."""

import pytest

from houston.lib.errors import NotFoundError
from houston.lib.mutations import MutationTracker
from houston.lib.yamlio import read_yaml
from houston.stores.backlog import (
    backlog_path,
    load_backlog,
    load_next_sprint_candidates,
    save_backlog,
    save_next_sprint_candidates,
)
from houston.stores.people import PersonRecord, has_person, load_people, upsert_person
from houston.stores.repos import (
    RepoConfig,
    get_repo,
    load_repos,
    parse_remote,
    repo_id_exists,
    upsert_repo,
    validate_repo_config,
)
from houston.stores.routing import (
    ComponentRoute,
    load_component_routing,
    parse_route,
    set_component_repos,
)
from houston.stores.sprints import (
    empty_scope,
    load_sprint,
    resolve_sprint_dir,
    save_sprint_metadata,
    save_sprint_scope,
)
from houston.stores.taxonomy import (
    add_component,
    add_labels,
    component_exists,
    label_exists,
    load_components,
    load_labels,
)

from conftest import GENERATOR, SPRINT_ID, STORY_ID


class TestBacklogStore:
    def test_missing_files_read_as_empty(self, workspace):
        assert load_backlog(workspace.config) == {"ordered": []}
        assert load_next_sprint_candidates(workspace.config) == {"candidates": []}

    def test_save_keeps_order_and_signs(self, workspace):
        tracker = MutationTracker()
        ids = ["ST-bbbbbbbb-0000-0000-0000-000000000000", STORY_ID]
        save_backlog(workspace.config, ids, tracker, notes="triaged")

        written = read_yaml(backlog_path(workspace.config))
        assert written == {"ordered": ids, "notes": "triaged", "generated_by": GENERATOR}
        assert load_backlog(workspace.config)["ordered"] == ids
        assert tracker.change_types() == ["backlog"]

    def test_next_sprint_candidates(self, workspace):
        tracker = MutationTracker()
        save_next_sprint_candidates(workspace.config, [STORY_ID], tracker)
        assert load_next_sprint_candidates(workspace.config)["candidates"] == [STORY_ID]
        assert tracker.change_types() == ["backlog"]


class TestSprintStore:
    def test_save_creates_structure(self, workspace):
        tracker = MutationTracker()
        save_sprint_metadata(workspace.config, {"id": SPRINT_ID, "name": "One",
                                                "start_date": "2024-06-01", "end_date": "2024-06-14"}, tracker)
        save_sprint_scope(workspace.config, SPRINT_ID, {**empty_scope(GENERATOR), "stories": [STORY_ID]}, tracker)

        sprint_dir = resolve_sprint_dir(workspace.config, SPRINT_ID)
        assert (sprint_dir / "notes.md").read_text() == f"# {SPRINT_ID} Notes\n"
        files = load_sprint(workspace.config, SPRINT_ID)
        assert files.meta["start_date"] == "2024-06-01"
        assert files.meta["generated_by"] == GENERATOR
        assert files.scope["stories"] == [STORY_ID]
        assert tracker.change_types() == ["sprints"]

    def test_status_is_not_persisted(self, workspace):
        save_sprint_metadata(workspace.config, {"id": SPRINT_ID, "name": "One"}, MutationTracker())
        meta = read_yaml(resolve_sprint_dir(workspace.config, SPRINT_ID) / "sprint.yaml")
        assert "status" not in meta

    def test_missing_sprint_raises(self, workspace):
        with pytest.raises(NotFoundError, match=f"Sprint {SPRINT_ID} not found"):
            load_sprint(workspace.config, SPRINT_ID)

    def test_empty_scope(self):
        assert empty_scope(GENERATOR) == {
            "epics": [], "stories": [], "subtasks": [], "bugs": [], "generated_by": GENERATOR,
        }


class TestRepoStore:
    def test_upsert_merges_and_sorts(self, workspace):
        tracker = MutationTracker()
        upsert_repo(workspace.config, RepoConfig(id="web", provider="github",
                                                 remote="git@github.com:acme/web.git",
                                                 default_branch="main"), tracker)
        upsert_repo(workspace.config, RepoConfig(id="api", provider="local", default_branch="main",
                                                 extra={"pr": {"open_by_default": True}}), tracker)
        upsert_repo(workspace.config, RepoConfig(id="web", provider="github", default_branch="develop"), tracker)

        repos = load_repos(workspace.config)
        assert [r.id for r in repos] == ["api", "web"]
        web = get_repo(workspace.config, "web")
        assert web.default_branch == "develop"
        assert web.remote == "git@github.com:acme/web.git"
        assert repos[0].extra == {"pr": {"open_by_default": True}}
        assert tracker.change_types() == ["repos"]

    def test_get_missing_repo_raises(self, workspace):
        with pytest.raises(NotFoundError, match="Repo configuration nope not found"):
            get_repo(workspace.config, "nope")
        assert not repo_id_exists(workspace.config, "nope")

    def test_parse_remote(self):
        ssh = parse_remote("git@github.com:acme/api.git")
        assert (ssh.host, ssh.owner, ssh.repo) == ("github.com", "acme", "api")
        https = parse_remote("https://token@gitlab.com/acme/web.git")
        assert (https.host, https.owner, https.repo) == ("gitlab.com", "acme", "web")
        assert parse_remote("not a remote") is None

    def test_validate_repo_config(self):
        valid = RepoConfig(id="api", provider="github", remote="git@github.com:acme/api.git",
                           default_branch="main")
        assert validate_repo_config(valid) == []

        errors = validate_repo_config(RepoConfig(id="Bad Id", provider="svn",
                                                 branch_prefix={"epic": "epic"}))
        assert any(e.startswith("id must match") for e in errors)
        assert any(e.startswith("provider must be one of") for e in errors)
        assert "remote is required" in errors
        assert "default_branch is required" in errors
        assert any(e.startswith("branch_prefix.story") for e in errors)


class TestRoutingStore:
    def test_parse_route(self):
        assert parse_route("api") == ComponentRoute(repo_id="api")
        assert parse_route("api@services/api") == ComponentRoute(repo_id="api", path="services/api")
        assert parse_route("  ") is None

    def test_set_and_clear_component_repos(self, workspace):
        tracker = MutationTracker()
        set_component_repos(workspace.config, "api", ["web", "api", "api"], tracker)
        routing = load_component_routing(workspace.config)
        assert [r.repo_id for r in routing.routes["api"]] == ["api", "web"]
        assert routing.defaults is None

        set_component_repos(workspace.config, "api", [], tracker)
        assert "api" not in load_component_routing(workspace.config).routes
        assert tracker.change_types() == ["routing"]

    def test_defaults_parsed(self, workspace):
        workspace.write_yaml("repos/component-routing.yaml", {
            "routes": {"web": ["web@apps/web"]},
            "defaults": {"story": ["api"]},
        })
        routing = load_component_routing(workspace.config)
        assert routing.routes["web"] == [ComponentRoute(repo_id="web", path="apps/web")]
        assert routing.defaults == {"story": [ComponentRoute(repo_id="api")]}


class TestPeopleStore:
    def test_upsert_person(self, workspace):
        tracker = MutationTracker()
        upsert_person(workspace.config, PersonRecord(id="user:zoe", name="Zoe"), tracker)
        upsert_person(workspace.config, PersonRecord(id="user:adam", email="adam@example.com"), tracker)
        upsert_person(workspace.config, PersonRecord(id="user:zoe", roles=["pm"]), tracker)

        people = load_people(workspace.config)
        assert [p.id for p in people] == ["user:adam", "user:zoe"]
        assert people[1].name == "Zoe"
        assert people[1].roles == ["pm"]
        assert has_person(workspace.config, "user:adam")
        assert tracker.change_types() == ["people"]


class TestTaxonomyStore:
    def test_components_are_deduplicated_and_sorted(self, workspace):
        tracker = MutationTracker()
        add_component(workspace.config, "web", tracker)
        add_component(workspace.config, "api", tracker)
        add_component(workspace.config, " web ", tracker)
        assert load_components(workspace.config) == ["api", "web"]
        assert component_exists(workspace.config, "api")
        assert tracker.change_types() == ["components"]

    def test_labels(self, workspace):
        tracker = MutationTracker()
        add_labels(workspace.config, ["ux", "backend", "ux"], tracker)
        assert load_labels(workspace.config) == ["backend", "ux"]
        assert label_exists(workspace.config, "ux")
        assert not label_exists(workspace.config, "infra")
        assert tracker.change_types() == ["labels"]
