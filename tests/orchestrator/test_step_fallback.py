"""Tests for mediavalet.orchestrator.step_fallback"""

from unittest.mock import AsyncMock

import pytest

from mediavalet.orchestrator.config import AgentConfig, FallbackPolicy
from mediavalet.orchestrator.context import ExecutionContext
from mediavalet.orchestrator.models import PlanStep, RunResult
from mediavalet.orchestrator.step_fallback import StepFallbackHandler
from mediavalet.orchestrator.tool_handler import ToolHandler
from mediavalet.providers.circuit_breaker import CircuitBreakerManager
from mediavalet.tools.registry import ToolRegistry


class ProviderImageTool:
    """create_image that only works for some providers."""

    name = "create_image"

    def __init__(self, working=("openai",)):
        self.working = set(working)
        self.calls = []

    async def execute(self, args, context):
        provider = args.get("provider")
        self.calls.append(provider)
        if provider in self.working:
            return {"success": True, "imageUrl": f"https://cdn/{provider}.png", "imageCaption": "A red fox"}
        return {"success": False, "error": f"{provider} is down"}


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.send_text = AsyncMock(return_value=True)
    mock.send_file = AsyncMock(return_value=True)
    return mock


def _fallback(tool, notifier, config=None):
    handler = ToolHandler(ToolRegistry([tool]), notifier)
    return StepFallbackHandler(handler, notifier, config, breaker_manager=CircuitBreakerManager())


class TestShouldAttempt:

    def test_pinned_provider_allows_retry(self, notifier):
        fallback = _fallback(ProviderImageTool(), notifier)
        assert fallback.should_attempt("create_image", {"provider": "gemini"}) is True
        assert fallback.should_attempt("edit_image", {"service": "openai"}) is True

    def test_unpinned_internal_fallback_skipped(self, notifier):
        fallback = _fallback(ProviderImageTool(), notifier)
        assert fallback.should_attempt("create_image", {}) is False

    def test_strict_policy(self, notifier):
        config = AgentConfig(fallback_policy=FallbackPolicy.STRICT)
        fallback = _fallback(ProviderImageTool(), notifier, config)
        assert fallback.should_attempt("create_image", {"provider": "gemini"}) is False

    def test_non_creation_tools(self, notifier):
        fallback = _fallback(ProviderImageTool(), notifier)
        assert fallback.should_attempt("search_web", {"provider": "x"}) is False
        assert fallback.should_attempt(None, {}) is False


class TestProvidersAndArgs:

    def test_failed_provider_excluded(self, notifier):
        fallback = _fallback(ProviderImageTool(), notifier)
        assert fallback.providers_to_try("create_image", {"provider": "openai"}) == ["gemini", "grok"]
        assert fallback.providers_to_try("create_video", {"provider": "sora"}) == ["veo3", "kling"]

    def test_build_args(self):
        step = PlanStep(1, "Make it blue", "edit_image", {"image_url": "https://cdn/a.png"})
        assert StepFallbackHandler.build_args("edit_image", "grok", step) == {
            "image_url": "https://cdn/a.png",
            "edit_instruction": "Make it blue",
            "service": "grok",
        }
        video_step = PlanStep(2, "Slow motion", "edit_video", {"video_url": "v.mp4", "prompt": "slower"})
        assert StepFallbackHandler.build_args("edit_video", "sora", video_step)["provider"] == "sora"
        create_step = PlanStep(3, "Draw", "create_image", {"prompt": "a fox"})
        assert StepFallbackHandler.build_args("create_image", "openai", create_step) == {
            "prompt": "a fox",
            "provider": "openai",
        }


class TestTryFallback:

    @pytest.mark.asyncio
    async def test_replacement_delivered(self, notifier):
        tool = ProviderImageTool(working=("openai",))
        fallback = _fallback(tool, notifier)
        step = PlanStep(2, "Draw a fox", "create_image", {"prompt": "a fox", "provider": "gemini"})

        result = await fallback.try_fallback(
            "chat-1", step, RunResult(success=False, error="gemini is down"), ExecutionContext(chat_id="chat-1"), "m1"
        )

        assert tool.calls == ["openai"]
        assert result.success is True
        assert result.image_url == "https://cdn/openai.png"
        assert result.tools_used == ["create_image"]
        args = notifier.send_file.await_args.args
        assert args[0] == "chat-1"
        assert args[1] == "https://cdn/openai.png"
        assert args[3] == "A red fox"
        assert args[4] == "m1"
        notifier.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhausted_reports_once(self, notifier):
        tool = ProviderImageTool(working=())
        fallback = _fallback(tool, notifier)
        step = PlanStep(1, "Draw", "create_image", {"provider": "gemini"})

        result = await fallback.try_fallback(
            "chat-1", step, RunResult(success=False, error="down"), ExecutionContext(chat_id="chat-1")
        )

        assert result is None
        assert tool.calls == ["openai", "grok"]
        notifier.send_text.assert_awaited_once_with("chat-1", "❌ All providers failed for create_image", None)
        notifier.send_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_attempted_returns_none(self, notifier):
        tool = ProviderImageTool()
        fallback = _fallback(tool, notifier)
        step = PlanStep(1, "Draw", "create_image", {})
        assert await fallback.try_fallback("chat-1", step, RunResult(success=False), ExecutionContext()) is None
        assert tool.calls == []
