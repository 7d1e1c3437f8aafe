"""Tests for mediavalet.orchestrator.single_step"""

from unittest.mock import AsyncMock

import pytest

from mediavalet.constants import (
    CREATION_ALREADY_SUCCEEDED_ERROR,
    DUPLICATE_CALL_ERROR,
    STEP_TOOL_RESTRICTED_ERROR,
)
from mediavalet.llm.session import SessionResponse
from mediavalet.orchestrator.context import ExecutionContext
from mediavalet.orchestrator.single_step import execute_single_step
from mediavalet.orchestrator.tool_handler import ToolHandler
from mediavalet.tools.models import FunctionCall
from mediavalet.tools.registry import ToolRegistry


class ScriptedSession:
    def __init__(self, replies):
        self.replies = list(replies)
        self.sent = []

    async def send_message(self, message):
        self.sent.append(message)
        if not self.replies:
            return SessionResponse("")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class CountingTool:
    def __init__(self, name, result):
        self.name = name
        self.result = result
        self.calls = 0

    async def execute(self, args, context):
        self.calls += 1
        return self.result


def _call(name, args=None, call_id="c1"):
    return SessionResponse("", [FunctionCall(name, args or {}, id=call_id)])


@pytest.fixture
def image_tool():
    return CountingTool("create_image", {"success": True, "imageUrl": "https://cdn/fox.png", "imageCaption": "A fox"})


@pytest.fixture
def search_tool():
    return CountingTool("search_web", {"success": True, "data": "links"})


@pytest.fixture
def handler(image_tool, search_tool):
    return ToolHandler(ToolRegistry([image_tool, search_tool]), AsyncMock())


@pytest.fixture
def context():
    return ExecutionContext(chat_id="chat-1")


class TestToolRestriction:

    @pytest.mark.asyncio
    async def test_other_tools_blocked_target_runs(self, handler, context, image_tool, search_tool):
        session = ScriptedSession([
            _call("search_web", {"q": "fox"}),
            _call("create_image", {"prompt": "fox"}),
            SessionResponse("Here is the fox"),
        ])

        result = await execute_single_step(
            session, "Draw a fox", context, handler, expected_tool="create_image"
        )

        assert search_tool.calls == 0
        assert image_tool.calls == 1
        blocked = session.sent[1][0].response
        assert blocked == {
            "success": False,
            "error": STEP_TOOL_RESTRICTED_ERROR.format(tool="create_image"),
            "blocked": True,
        }
        assert result.success is True
        assert result.text == "Here is the fox"
        assert result.image_url == "https://cdn/fox.png"
        assert result.tools_used == ["create_image"]
        assert result.iterations == 2

    @pytest.mark.asyncio
    async def test_target_runs_at_most_once(self, handler, context, image_tool):
        session = ScriptedSession([
            SessionResponse("", [
                FunctionCall("create_image", {"prompt": "fox"}, id="a"),
                FunctionCall("create_image", {"prompt": "fox 2"}, id="b"),
            ]),
            SessionResponse("Done"),
        ])

        result = await execute_single_step(
            session, "Draw a fox", context, handler, expected_tool="create_image"
        )

        assert image_tool.calls == 1
        second = session.sent[1][1].response
        assert second["blocked"] is True
        assert second["error"] == "create_image was already executed for this step."
        assert result.text == "Done"

    @pytest.mark.asyncio
    async def test_failed_target_fails_step(self, context):
        failing = CountingTool("create_image", {"success": False, "error": "quota exceeded"})
        handler = ToolHandler(ToolRegistry([failing]), AsyncMock())
        session = ScriptedSession([_call("create_image", {"prompt": "x"}), SessionResponse("Sorry")])

        result = await execute_single_step(session, "Draw", context, handler, expected_tool="create_image")

        assert result.success is False
        assert result.error == "quota exceeded"
        assert context.tool_calls[0].success is False

    @pytest.mark.asyncio
    async def test_iteration_bound(self, handler, context):
        session = ScriptedSession([_call("search_web", call_id=str(i)) for i in range(5)])
        result = await execute_single_step(
            session, "Draw", context, handler, expected_tool="create_image", max_iterations=2
        )
        assert result.iterations == 2
        assert result.tools_used == []
        assert result.success is True


class TestUnrestrictedStep:

    @pytest.mark.asyncio
    async def test_any_tool_may_run(self, handler, context, search_tool, image_tool):
        session = ScriptedSession([
            _call("search_web", {"q": "fox"}),
            _call("create_image", {"prompt": "fox"}),
            SessionResponse("All done"),
        ])
        result = await execute_single_step(session, "Research and draw", context, handler)

        assert search_tool.calls == 1
        assert image_tool.calls == 1
        assert result.tools_used == ["search_web", "create_image"]
        assert result.text == "All done"

    @pytest.mark.asyncio
    async def test_identical_repeats_blocked(self, handler, context, search_tool):
        session = ScriptedSession([
            _call("search_web", {"query": "cats"}, call_id="1"),
            _call("search_web", {"query": "cats"}, call_id="2"),
            _call("search_web", {"query": "cats"}, call_id="3"),
            SessionResponse("Cats are great"),
        ])

        result = await execute_single_step(session, "Find cats", context, handler)

        assert search_tool.calls == 1
        assert result.tools_used == ["search_web"]
        assert session.sent[2][0].response == {
            "success": False, "error": DUPLICATE_CALL_ERROR, "blocked": True,
        }
        assert len(context.tool_calls) == 1
        assert result.text == "Cats are great"

    @pytest.mark.asyncio
    async def test_succeeded_creation_not_repeated(self, handler, context, image_tool):
        session = ScriptedSession([
            _call("create_image", {"prompt": "fox"}, call_id="1"),
            _call("create_image", {"prompt": "another fox"}, call_id="2"),
            SessionResponse("Done"),
        ])

        await execute_single_step(session, "Draw", context, handler)

        assert image_tool.calls == 1
        assert session.sent[2][0].response["error"] == (
            CREATION_ALREADY_SUCCEEDED_ERROR.format(tool="create_image")
        )

    @pytest.mark.asyncio
    async def test_session_errors_propagate(self, handler, context):
        session = ScriptedSession([RuntimeError("model unavailable")])
        with pytest.raises(RuntimeError, match="model unavailable"):
            await execute_single_step(session, "Hi", context, handler)
