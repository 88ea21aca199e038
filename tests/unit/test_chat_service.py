"""Unit tests for the ChatService tool-use loop."""

import json
from typing import Any
from unittest.mock import AsyncMock

import pytest

from roadmap_dashboard.core.chat_tools import SYSTEM_PROMPT, TOOL_DEFINITIONS, ToolDispatcher
from roadmap_dashboard.core.services import ChatService
from roadmap_dashboard.errors import ChatNotConfiguredError, UpstreamServiceError


def _text_response(text: str) -> dict[str, Any]:
    return {
        "stop_reason": "end_turn",
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }


def _tool_response(*calls: tuple[str, str, dict[str, Any]]) -> dict[str, Any]:
    return {
        "stop_reason": "tool_use",
        "content": [
            {"type": "tool_use", "id": call_id, "name": name, "input": arguments}
            for call_id, name, arguments in calls
        ],
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }


class TestChatService:
    """Tests for ChatService.chat()."""

    @pytest.mark.asyncio()
    async def test_plain_answer(self, llm_client: AsyncMock, tool_dispatcher: ToolDispatcher) -> None:
        llm_client.create_message.side_effect = [_text_response("All good.")]
        service = ChatService(llm_client=llm_client, dispatcher=tool_dispatcher)

        result = await service.chat([{"role": "user", "content": "How are we doing?"}])

        assert result["message"] == "All good."
        assert result["tool_calls"] == []
        assert result["usage"] == {"input_tokens": 10, "output_tokens": 5}
        llm_client.create_message.assert_awaited_once_with(
            SYSTEM_PROMPT,
            [{"role": "user", "content": "How are we doing?"}],
            TOOL_DEFINITIONS,
        )

    @pytest.mark.asyncio()
    async def test_executes_tools_then_answers(self, llm_client: AsyncMock, tool_dispatcher: ToolDispatcher) -> None:
        llm_client.create_message.side_effect = [
            _tool_response(("tu_1", "get_dashboard_kpis", {}), ("tu_2", "analyze_dependencies", {})),
            _text_response("Progress is 61% with 2 blocked milestones."),
        ]
        service = ChatService(llm_client=llm_client, dispatcher=tool_dispatcher)

        result = await service.chat([{"role": "user", "content": "Status?"}])

        assert result["message"] == "Progress is 61% with 2 blocked milestones."
        assert [call["tool"] for call in result["tool_calls"]] == ["get_dashboard_kpis", "analyze_dependencies"]

        second_call_messages = llm_client.create_message.await_args_list[1].args[1]
        assert second_call_messages[1]["role"] == "assistant"
        tool_results = second_call_messages[2]["content"]
        assert [block["tool_use_id"] for block in tool_results] == ["tu_1", "tu_2"]
        assert json.loads(tool_results[0]["content"])["overall_progress"] == 61
        assert "is_error" not in tool_results[0]

    @pytest.mark.asyncio()
    async def test_unknown_tool_is_reported_to_model(
        self,
        llm_client: AsyncMock,
        tool_dispatcher: ToolDispatcher,
    ) -> None:
        llm_client.create_message.side_effect = [
            _tool_response(("tu_1", "drop_tables", {})),
            _text_response("I cannot do that."),
        ]
        service = ChatService(llm_client=llm_client, dispatcher=tool_dispatcher)

        result = await service.chat([{"role": "user", "content": "Drop tables"}])

        tool_result = llm_client.create_message.await_args_list[1].args[1][2]["content"][0]
        assert tool_result["is_error"] is True
        assert tool_result["content"] == "Unknown tool: drop_tables"
        assert result["tool_calls"] == [{"tool": "drop_tables", "result": {"error": "Unknown tool: drop_tables"}}]

    @pytest.mark.asyncio()
    async def test_tool_rounds_are_bounded(self, llm_client: AsyncMock, tool_dispatcher: ToolDispatcher) -> None:
        llm_client.create_message.return_value = _tool_response(("tu", "get_dashboard_kpis", {}))
        service = ChatService(llm_client=llm_client, dispatcher=tool_dispatcher, max_tool_rounds=2)

        result = await service.chat([{"role": "user", "content": "Loop"}])

        assert llm_client.create_message.await_count == 3
        assert len(result["tool_calls"]) == 2
        assert result["message"] == ""

    @pytest.mark.asyncio()
    async def test_missing_client_raises(self, tool_dispatcher: ToolDispatcher) -> None:
        service = ChatService(llm_client=None, dispatcher=tool_dispatcher)
        with pytest.raises(ChatNotConfiguredError):
            await service.chat([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio()
    async def test_upstream_error_propagates(self, llm_client: AsyncMock, tool_dispatcher: ToolDispatcher) -> None:
        llm_client.create_message.side_effect = UpstreamServiceError("anthropic", 529, "overloaded")
        service = ChatService(llm_client=llm_client, dispatcher=tool_dispatcher)
        with pytest.raises(UpstreamServiceError, match="anthropic \\(529\\)"):
            await service.chat([{"role": "user", "content": "Hi"}])
