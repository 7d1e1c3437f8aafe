"""Tests for mediavalet.text.pipeline"""

import pytest

from mediavalet.text.pipeline import (
    get_last_output_tool,
    is_intermediate_tool_output_in_pipeline,
    is_two_separate_commands,
    looks_like_data_tool_output,
)
from mediavalet.tools.registry import ToolRegistry


@pytest.fixture
def registry():
    return ToolRegistry()


class TestIsTwoSeparateCommands:

    def test_and_then(self):
        assert is_two_separate_commands("create an image and then send a poll") is True

    def test_single_request(self):
        assert is_two_separate_commands("draw a cat wearing a hat") is False
        assert is_two_separate_commands(None) is False


class TestHelpers:

    def test_last_output_tool(self, registry):
        tools = ["create_image", "search_web", "create_poll"]
        assert get_last_output_tool(tools, registry) == "create_poll"
        assert get_last_output_tool(["search_web"], registry) is None

    def test_data_output_patterns(self):
        assert looks_like_data_tool_output("Found 3 results", ["search_web"]) is True
        assert looks_like_data_tool_output("A lovely sunset", ["search_web"]) is False
        assert looks_like_data_tool_output("Found it", []) is False


class TestIsIntermediateToolOutputInPipeline:

    def test_history_feeding_image_is_suppressed(self, registry):
        result = {
            "tools_used": ["get_chat_history", "create_image"],
            "image_url": "https://cdn/a.png",
            "text": "Based on the conversation history, here is the picture",
        }
        assert is_intermediate_tool_output_in_pipeline(result, "draw our chat", registry) is True

    def test_two_separate_commands_not_suppressed(self, registry):
        result = {
            "tools_used": ["get_chat_history", "create_image"],
            "image_url": "https://cdn/a.png",
            "text": "Here are the messages",
        }
        user_text = "summarize the history and then create an image"
        assert is_intermediate_tool_output_in_pipeline(result, user_text, registry) is False

    def test_no_final_output_not_suppressed(self, registry):
        result = {"tools_used": ["search_web"], "text": "Found 3 results"}
        assert is_intermediate_tool_output_in_pipeline(result, "search", registry) is False

    def test_intermediate_output_tool(self, registry):
        result = {
            "tools_used": ["create_image", "create_poll"],
            "image_url": "https://cdn/a.png",
            "poll": {"question": "Like it?", "options": ["Yes", "No"]},
            "text": "Image created! Vote below",
        }
        user_text = "make a picture with a poll"
        assert is_intermediate_tool_output_in_pipeline(result, user_text, registry) is True

    def test_output_tool_alone_not_suppressed(self, registry):
        result = {
            "tools_used": ["create_image"],
            "image_url": "https://cdn/a.png",
            "text": "Here is your image of a cat",
        }
        assert is_intermediate_tool_output_in_pipeline(result, "draw a cat", registry) is False

    def test_accepts_objects(self, registry):
        class Result:
            tools_used = ["search_web", "send_location"]
            image_url = video_url = audio_url = poll = None
            latitude = 32.0
            longitude = 34.8
            text = "Found the results you asked for"

        assert is_intermediate_tool_output_in_pipeline(Result(), "where is it", registry) is True
