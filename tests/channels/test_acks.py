"""Tests for mediavalet.channels.acks"""

from unittest.mock import AsyncMock

import pytest

from mediavalet.channels.acks import (
    build_ack_message,
    get_tool_ack_message,
    provider_ack_call,
    send_tool_ack_message,
)
from mediavalet.tools.models import FunctionCall


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.send_text = AsyncMock(return_value=True)
    return mock


# =========================================================================
# Message building
# =========================================================================


class TestGetToolAckMessage:

    def test_image_default_provider(self):
        assert get_tool_ack_message("create_image") == "Creating an image with Gemini... 🎨"

    def test_video_default_provider_uses_model_name(self):
        assert get_tool_ack_message("create_video") == "Creating a video with Kling... 🎬"

    def test_video_alias(self):
        assert get_tool_ack_message("create_video", "sora") == "Creating a video with Sora 2... 🎬"

    def test_unknown_tool_gets_default(self):
        assert get_tool_ack_message("make_coffee") == "Working on it... ⚙️"


class TestBuildAckMessage:

    def test_single(self):
        calls = [FunctionCall("create_image", {"prompt": "cat", "provider": "openai"})]
        assert build_ack_message(calls) == "Creating an image with OpenAI... 🎨"

    def test_two_joined(self):
        calls = [
            {"name": "search_web", "args": {}},
            {"name": "create_poll", "args": {}},
        ]
        assert build_ack_message(calls) == "Searching the web... 🔍 Creating a poll... 📊"

    def test_three_or_more_counted(self):
        calls = [FunctionCall("search_web"), FunctionCall("create_poll"), FunctionCall("chat_summary")]
        assert build_ack_message(calls) == "3 actions in progress... ⚙️"

    def test_location_has_no_ack(self):
        assert build_ack_message([FunctionCall("send_location")]) == ""


# =========================================================================
# Sending
# =========================================================================


class TestSendToolAckMessage:

    @pytest.mark.asyncio
    async def test_sends_with_quote(self, notifier):
        sent = await send_tool_ack_message(
            notifier, "chat-1", [FunctionCall("search_web")], quoted_message_id="m1"
        )
        assert sent is True
        notifier.send_text.assert_awaited_once_with("chat-1", "Searching the web... 🔍", "m1")

    @pytest.mark.asyncio
    async def test_skipped_tools_not_acked(self, notifier):
        sent = await send_tool_ack_message(
            notifier, "chat-1", [FunctionCall("transcribe_audio")], skip_tools=("transcribe_audio",)
        )
        assert sent is False
        notifier.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_chat_no_ack(self, notifier):
        assert await send_tool_ack_message(notifier, None, [FunctionCall("search_web")]) is False

    def test_provider_ack_call(self):
        call = provider_ack_call("edit_image", "grok")
        assert build_ack_message([call]) == "Editing the image with Grok... ✏️"
