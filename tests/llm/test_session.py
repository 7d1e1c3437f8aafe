"""Tests for mediavalet.llm.session"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediavalet.llm.base import LLMConfig, LLMResponse, ToolCall
from mediavalet.llm.session import ChatSession
from mediavalet.tools.models import FunctionResponse


@pytest.fixture
def client():
    mock = MagicMock()
    mock.chat_completion = AsyncMock()
    return mock


class TestChatSession:

    @pytest.mark.asyncio
    async def test_text_reply(self, client):
        client.chat_completion.return_value = LLMResponse(content="Hello!")
        session = ChatSession(client, system_instruction="Be nice", config={"model": "m"})

        response = await session.send_message("Hi")

        assert response.text() == "Hello!"
        assert response.function_calls() is None
        assert [m["role"] for m in session.messages] == ["system", "user", "assistant"]
        kwargs = client.chat_completion.await_args.kwargs
        assert kwargs["tools"] is None
        assert kwargs["config"] == {"model": "m"}

    @pytest.mark.asyncio
    async def test_tool_calls_and_responses_paired_by_id(self, client):
        client.chat_completion.side_effect = [
            LLMResponse(
                content="",
                tool_calls=[
                    ToolCall(id="c1", name="create_image", arguments={"prompt": "cat"}),
                    ToolCall(id="c2", name="search_web", arguments={"query": "cats"}),
                ],
            ),
            LLMResponse(content="Done"),
        ]
        session = ChatSession(client, tools=[{"type": "function"}])

        response = await session.send_message("cat picture and facts")
        calls = response.function_calls()
        assert [c.name for c in calls] == ["create_image", "search_web"]
        assert calls[0].args == {"prompt": "cat"}

        await session.send_message([
            FunctionResponse("search_web", {"data": "facts"}, id="c2"),
            FunctionResponse("create_image", {"imageUrl": "u"}, id="c1"),
        ])

        tool_messages = [m for m in session.messages if m["role"] == "tool"]
        assert [m["tool_call_id"] for m in tool_messages] == ["c1", "c2"]
        assert json.loads(tool_messages[0]["content"]) == {"imageUrl": "u"}

        assistant = session.messages[1]
        assert assistant["tool_calls"][0]["function"]["name"] == "create_image"
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"prompt": "cat"}

    @pytest.mark.asyncio
    async def test_unanswered_call_gets_placeholder(self, client):
        client.chat_completion.side_effect = [
            LLMResponse(content="", tool_calls=[ToolCall(id="c1", name="create_poll", arguments={})]),
            LLMResponse(content="ok"),
        ]
        session = ChatSession(client)
        await session.send_message("poll please")
        await session.send_message("never mind")

        tool_message = next(m for m in session.messages if m["role"] == "tool")
        assert json.loads(tool_message["content"]) == {"error": "Tool call was not executed"}

    @pytest.mark.asyncio
    async def test_missing_call_id_generated(self, client):
        client.chat_completion.return_value = LLMResponse(
            content="", tool_calls=[ToolCall(id="", name="search_web", arguments={})]
        )
        session = ChatSession(client)
        response = await session.send_message("search")
        assert response.function_calls()[0].id.startswith("call_")

    def test_history_seeded_after_system(self, client):
        history = [{"role": "user", "content": "earlier"}, {"role": "assistant", "content": "reply"}]
        session = ChatSession(client, system_instruction="sys", history=history)
        assert [m["content"] for m in session.messages] == ["sys", "earlier", "reply"]


class TestLLMConfig:

    def test_from_dict_routes_unknown_keys_to_extra(self):
        config = LLMConfig.from_dict({
            "provider": "litellm",
            "model": "gemini/gemini-2.5-flash",
            "temperature": 0.2,
            "top_p": 0.9,
        })
        assert config.model == "gemini/gemini-2.5-flash"
        assert config.temperature == 0.2
        assert config.extra == {"top_p": 0.9}
