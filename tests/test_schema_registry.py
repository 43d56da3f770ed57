"""Tests for houston.lib.schema_registry."""

import json

import pytest

from houston.lib.errors import SchemaLoadError, UnknownSchemaError
from houston.lib.schema_registry import (
    SchemaRegistry,
    clear_registry_cache,
    get_schema_registry,
)

from conftest import CREATED, STORY_ID


class TestBundledSchemas:
    def test_all_bundled_schemas_load(self, tmp_path):
        registry = SchemaRegistry(tmp_path / "schema")
        assert registry.list_schemas() == [
            "backlog",
            "component-routing",
            "repos",
            "sprint",
            "sprint.scope",
            "ticket.base",
            "ticket.bug",
            "ticket.epic",
            "ticket.story",
            "ticket.subtask",
            "transitions",
        ]

    def test_valid_backlog(self, tmp_path):
        registry = SchemaRegistry(tmp_path)
        result = registry.validate("backlog", {"ordered": [STORY_ID], "notes": "", "generated_by": "houston@0.1.0"})
        assert result.valid
        assert result.errors == []

    def test_relative_ref_between_schemas(self, tmp_path):
        registry = SchemaRegistry(tmp_path)
        result = registry.validate("ticket.story", {"id": STORY_ID, "type": "story"})
        assert not result.valid
        assert any("'title' is a required property" in e.message for e in result.errors)

    def test_error_paths(self, tmp_path):
        registry = SchemaRegistry(tmp_path)
        result = registry.validate("sprint.scope", {"stories": ["not-an-id"]})
        assert [e.path for e in result.errors] == ["stories.0"]
        assert result.errors[0].keyword == "pattern"

    def test_unknown_key_raises(self, tmp_path):
        registry = SchemaRegistry(tmp_path)
        assert not registry.has_schema("ticket.chore")
        with pytest.raises(UnknownSchemaError, match="ticket.chore"):
            registry.validate("ticket.chore", {})


class TestWorkspaceSchemas:
    def test_workspace_schema_takes_precedence(self, tmp_path):
        schema_dir = tmp_path / "schema"
        schema_dir.mkdir()
        (schema_dir / "backlog.schema.json").write_text(json.dumps({
            "type": "object",
            "required": ["custom"],
        }))

        registry = SchemaRegistry(schema_dir)

        assert registry.list_schemas().count("backlog") == 1
        result = registry.validate("backlog", {"ordered": []})
        assert [e.message for e in result.errors] == ["'custom' is a required property"]

    def test_invalid_schema_file_raises(self, tmp_path):
        schema_dir = tmp_path / "schema"
        schema_dir.mkdir()
        (schema_dir / "broken.schema.json").write_text("{not json")
        with pytest.raises(SchemaLoadError, match="broken.schema.json"):
            SchemaRegistry(schema_dir)

    def test_registry_cached_per_directory(self, tmp_path):
        clear_registry_cache()
        first = get_schema_registry(tmp_path / "schema")
        assert get_schema_registry(tmp_path / "schema") is first
        assert get_schema_registry(tmp_path / "other") is not first
        clear_registry_cache()
        assert get_schema_registry(tmp_path / "schema") is not first


class TestFormats:
    def test_date_time_fields_are_checked(self, workspace):
        ticket = workspace.add_ticket(STORY_ID)
        registry = SchemaRegistry(workspace.config.tracking.schema_dir)
        assert registry.validate("ticket.story", ticket).valid

        ticket["created_at"] = "garbage"
        result = registry.validate("ticket.story", ticket)

        assert [(e.path, e.keyword) for e in result.errors] == [("created_at", "format")]

    def test_pull_request_url_must_be_a_uri(self, workspace):
        ticket = workspace.add_ticket(STORY_ID)
        ticket["code"]["repos"] = [{
            "repo_id": "api",
            "branch": f"feat/{STORY_ID}--login",
            "created_by": "user:alice",
            "created_at": CREATED,
            "pr": {"base": "main", "head": "feat/login", "state": "open", "url": "not a uri"},
        }]
        registry = SchemaRegistry(workspace.config.tracking.schema_dir)

        result = registry.validate("ticket.story", ticket)

        assert [(e.path, e.keyword) for e in result.errors] == [("code.repos.0.pr.url", "format")]
