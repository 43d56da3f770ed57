"""Tests for houston.workspace.resolver."""

from unittest.mock import patch

import pytest

from houston.lib.errors import AmbiguousIdError, NotFoundError, UnrecognizedIdError
from houston.workspace import inventory as inventory_module
from houston.workspace.resolver import resolve_ticket_id, resolve_ticket_ids

from conftest import EPIC_ID, STORY_ID

TWIN_ID = "ST-22222222-aaaa-bbbb-cccc-dddddddddddd"


class TestResolveTicketId:
    def test_canonical_id_skips_inventory(self, workspace):
        with patch("houston.workspace.resolver.collect_workspace_inventory") as mock_collect:
            result = resolve_ticket_id(workspace.config, f"  {STORY_ID} ")
        assert result.id == STORY_ID
        assert result.inventory is None
        mock_collect.assert_not_called()

    def test_short_id_resolves_unique_match(self, workspace):
        workspace.base()
        workspace.add_ticket(STORY_ID)
        workspace.add_ticket(EPIC_ID)
        result = resolve_ticket_id(workspace.config, "ST-22222222")
        assert result.id == STORY_ID
        assert result.inventory is not None

    def test_ambiguous_short_id(self, workspace):
        workspace.base()
        workspace.add_ticket(STORY_ID)
        workspace.add_ticket(TWIN_ID)
        with pytest.raises(AmbiguousIdError) as exc_info:
            resolve_ticket_id(workspace.config, "ST-22222222")
        assert exc_info.value.matches == [STORY_ID, TWIN_ID]
        assert "please use the full canonical id" in str(exc_info.value)

    def test_short_id_without_match(self, workspace):
        workspace.base()
        with pytest.raises(NotFoundError):
            resolve_ticket_id(workspace.config, "BG-deadbeef")

    def test_short_ids_can_be_disabled(self, workspace):
        with pytest.raises(UnrecognizedIdError):
            resolve_ticket_id(workspace.config, "ST-22222222", allow_short=False)

    @pytest.mark.parametrize("value", ["", "   ", "story-1", "ST-XYZ"])
    def test_unrecognized_values(self, workspace, value):
        with pytest.raises(UnrecognizedIdError):
            resolve_ticket_id(workspace.config, value)


class TestResolveTicketIds:
    def test_inventory_collected_once_per_batch(self, workspace):
        workspace.base()
        workspace.add_ticket(STORY_ID)
        workspace.add_ticket(EPIC_ID)
        with patch(
            "houston.workspace.resolver.collect_workspace_inventory",
            wraps=inventory_module.collect_workspace_inventory,
        ) as mock_collect:
            ids, inventory = resolve_ticket_ids(workspace.config, ["ST-22222222", "EPIC-11111111", STORY_ID])
        assert ids == [STORY_ID, EPIC_ID, STORY_ID]
        assert inventory is not None
        assert mock_collect.call_count == 1
