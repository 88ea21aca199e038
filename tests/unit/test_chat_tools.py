"""Unit tests for the assistant tool catalogue and ToolDispatcher."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from roadmap_dashboard.core.chat_tools import TOOL_DEFINITIONS, TOOL_NAMES, ToolDispatcher
from roadmap_dashboard.core.domain import ActivityLogRecord, MaturityDefinitionRecord
from roadmap_dashboard.errors import UnknownToolError


class TestToolCatalogue:
    def test_every_tool_has_schema(self) -> None:
        for tool in TOOL_DEFINITIONS:
            assert tool["description"]
            assert tool["input_schema"]["type"] == "object"

    def test_tool_names(self) -> None:
        assert TOOL_NAMES == {
            "get_capabilities",
            "get_milestones",
            "get_quick_wins",
            "get_dashboard_kpis",
            "analyze_dependencies",
            "generate_progress_report",
            "get_maturity_definitions",
            "get_technology_options",
            "get_activity_log",
        }


class TestToolDispatcher:
    """Tests for ToolDispatcher.execute()."""

    @pytest.mark.asyncio()
    async def test_get_capabilities_passes_priority(
        self,
        tool_dispatcher: ToolDispatcher,
        capability_repository: AsyncMock,
    ) -> None:
        result = await tool_dispatcher.execute("get_capabilities", {"priority": "CRITICAL"})

        capability_repository.list_capabilities.assert_awaited_once_with(priority="CRITICAL")
        assert result[0]["id"] == "cap-1"
        assert result[0]["name"] == "Scheduling"

    @pytest.mark.asyncio()
    async def test_get_milestones_passes_filters(
        self,
        tool_dispatcher: ToolDispatcher,
        milestone_repository: AsyncMock,
    ) -> None:
        await tool_dispatcher.execute("get_milestones", {"status": "blocked", "capability_id": "cap-2"})
        milestone_repository.list_milestones.assert_awaited_once_with(status="blocked", capability_id="cap-2")

    @pytest.mark.asyncio()
    async def test_get_quick_wins_without_arguments(
        self,
        tool_dispatcher: ToolDispatcher,
        quick_win_repository: AsyncMock,
    ) -> None:
        result = await tool_dispatcher.execute("get_quick_wins", None)
        quick_win_repository.list_quick_wins.assert_awaited_once_with(status=None, category=None)
        assert len(result) == 3

    @pytest.mark.asyncio()
    async def test_dashboard_kpis(self, tool_dispatcher: ToolDispatcher) -> None:
        result = await tool_dispatcher.execute("get_dashboard_kpis", {})
        assert result["overall_progress"] == 61
        assert result["blocked_milestones"] == 2

    @pytest.mark.asyncio()
    async def test_analyze_dependencies(self, tool_dispatcher: ToolDispatcher) -> None:
        result = await tool_dispatcher.execute("analyze_dependencies", {"capability_id": "cap-2"})
        assert result["blocked_count"] == 2
        assert [chain["milestone_id"] for chain in result["blocked_chains"]] == ["ms-c"]
        assert result["blocked_chains"][0]["blocked_dependencies"] == ("ms-b",)

    @pytest.mark.asyncio()
    async def test_progress_report(self, tool_dispatcher: ToolDispatcher) -> None:
        result = await tool_dispatcher.execute("generate_progress_report", {})
        assert result["summary"] == "Overall transformation is 61% complete."

    @pytest.mark.asyncio()
    async def test_maturity_definitions(
        self,
        tool_dispatcher: ToolDispatcher,
        reference_repository: AsyncMock,
    ) -> None:
        reference_repository.list_maturity_definitions.return_value = [
            MaturityDefinitionRecord(level=1, name="Initial", description="Ad hoc", characteristics=("manual",)),
        ]
        result = await tool_dispatcher.execute("get_maturity_definitions", {})
        assert result == [{"level": 1, "name": "Initial", "description": "Ad hoc", "characteristics": ("manual",)}]

    @pytest.mark.asyncio()
    async def test_technology_options_category(
        self,
        tool_dispatcher: ToolDispatcher,
        reference_repository: AsyncMock,
    ) -> None:
        await tool_dispatcher.execute("get_technology_options", {"category": "WFM"})
        reference_repository.list_technology_options.assert_awaited_once_with(category="WFM")

    @pytest.mark.asyncio()
    async def test_activity_log_serialises_timestamp(
        self,
        tool_dispatcher: ToolDispatcher,
        reference_repository: AsyncMock,
    ) -> None:
        reference_repository.list_activity.return_value = [
            ActivityLogRecord(
                id="log-1",
                table_name="milestones",
                record_id="ms-b",
                action="UPDATE",
                created_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
                user_name="Dana",
            ),
        ]
        result = await tool_dispatcher.execute("get_activity_log", {"limit": 3})

        reference_repository.list_activity.assert_awaited_once_with(limit=3)
        assert result[0]["created_at"] == "2026-03-01T12:00:00+00:00"
        assert result[0]["user_name"] == "Dana"

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("limit", [None, 0, -4, "ten", True])
    async def test_activity_log_default_limit(
        self,
        limit: object,
        tool_dispatcher: ToolDispatcher,
        reference_repository: AsyncMock,
    ) -> None:
        await tool_dispatcher.execute("get_activity_log", {"limit": limit})
        reference_repository.list_activity.assert_awaited_once_with(limit=10)

    @pytest.mark.asyncio()
    async def test_unknown_tool_raises(self, tool_dispatcher: ToolDispatcher) -> None:
        with pytest.raises(UnknownToolError, match="Unknown tool: delete_everything"):
            await tool_dispatcher.execute("delete_everything", {})
