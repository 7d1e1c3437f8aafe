"""Tests for mediavalet.orchestrator.orchestrator"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediavalet.channels.notifier import Notifier
from mediavalet.constants import RUN_TIMEOUT_ERROR
from mediavalet.db.agent_context import InMemoryContextStore
from mediavalet.llm.base import LLMResponse, ToolCall
from mediavalet.orchestrator.config import AgentConfig, BreakerConfig
from mediavalet.orchestrator.models import Plan, PlanStep
from mediavalet.orchestrator.orchestrator import AgentOrchestrator
from mediavalet.providers.circuit_breaker import CircuitBreakerManager
from mediavalet.tools.registry import ToolRegistry


class ImageTool:
    name = "create_image"

    async def execute(self, args, context):
        return {"success": True, "imageUrl": "https://cdn/cat.png", "imageCaption": "A cat"}


@pytest.fixture
def channel():
    mock = MagicMock()
    mock.send_text_message = AsyncMock(return_value={})
    mock.send_file_by_url = AsyncMock(return_value={})
    mock.send_location = AsyncMock(return_value={})
    mock.send_poll = AsyncMock(return_value={})
    return mock


@pytest.fixture
def llm_client():
    client = MagicMock()
    client.chat_completion = AsyncMock(return_value=LLMResponse(content="Hello there, how can I help you?"))
    return client


@pytest.fixture
def planner():
    mock = MagicMock()
    mock.plan = AsyncMock(return_value=Plan(is_multi_step=False))
    return mock


def _orchestrator(llm_client, channel, planner, config=None, store=None):
    return AgentOrchestrator(
        llm_client=llm_client,
        registry=ToolRegistry([ImageTool()]),
        notifier=Notifier(channel, typing_delay=0),
        config=config or AgentConfig(),
        context_store=store,
        planner=planner,
        breaker_manager=CircuitBreakerManager(),
    )


def _texts(channel):
    return [c.args[1] for c in channel.send_text_message.await_args_list]


# =========================================================================
# Single-step path
# =========================================================================


class TestSingleStepPath:

    @pytest.mark.asyncio
    async def test_text_answer_delivered(self, llm_client, channel, planner):
        orchestrator = _orchestrator(llm_client, channel, planner)

        result = await orchestrator.execute_and_deliver(
            "hi", "chat-1", {"input": {"originalMessageId": "m1"}}
        )

        assert result.success is True
        assert result.multi_step is False
        assert _texts(channel) == ["Hello there, how can I help you?"]
        assert channel.send_text_message.await_args.args[2] == "m1"

    @pytest.mark.asyncio
    async def test_tool_run_delivers_image(self, llm_client, channel, planner):
        llm_client.chat_completion.side_effect = [
            LLMResponse(content="", tool_calls=[ToolCall(id="c1", name="create_image", arguments={"prompt": "cat"})]),
            LLMResponse(content="Here you go"),
        ]
        orchestrator = _orchestrator(llm_client, channel, planner)

        result = await orchestrator.execute_and_deliver("draw a cat", "chat-1")

        assert result.image_url == "https://cdn/cat.png"
        file_args = channel.send_file_by_url.await_args.args
        assert file_args[1] == "https://cdn/cat.png"
        assert file_args[3] == "A cat"
        # ack first; the short closing text is dropped next to the image
        assert _texts(channel) == ["Creating an image with Gemini... 🎨"]

    @pytest.mark.asyncio
    async def test_run_timeout_returned_not_raised(self, llm_client, channel, planner):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        llm_client.chat_completion = AsyncMock(side_effect=slow)
        orchestrator = _orchestrator(llm_client, channel, planner, AgentConfig(timeout_seconds=0.01))

        result = await orchestrator.execute_and_deliver("hi", "chat-1")

        assert result.success is False
        assert result.timeout is True
        assert result.error == RUN_TIMEOUT_ERROR
        assert _texts(channel) == [f"❌ {RUN_TIMEOUT_ERROR}"]

    @pytest.mark.asyncio
    async def test_context_saved_when_memory_enabled(self, llm_client, channel, planner):
        store = InMemoryContextStore()
        config = AgentConfig(context_memory_enabled=True)
        llm_client.chat_completion.side_effect = [
            LLMResponse(content="", tool_calls=[ToolCall(id="c1", name="create_image", arguments={"prompt": "cat"})]),
            LLMResponse(content="Done"),
        ]
        orchestrator = _orchestrator(llm_client, channel, planner, config, store)

        await orchestrator.execute("draw a cat", "chat-1")

        saved = await store.get_agent_context("chat-1")
        assert saved["tool_calls"][0]["tool"] == "create_image"
        assert saved["generated_assets"]["images"][0]["url"] == "https://cdn/cat.png"

    @pytest.mark.asyncio
    async def test_previous_image_not_redelivered(self, llm_client, channel, planner):
        store = InMemoryContextStore()
        await store.save_agent_context("chat-1", {
            "tool_calls": [{"tool": "create_image", "args": {"prompt": "cat"}, "timestamp": 1}],
            "generated_assets": {"images": [{"url": "https://cdn/old.png", "timestamp": 1}]},
        })
        orchestrator = _orchestrator(
            llm_client, channel, planner, AgentConfig(context_memory_enabled=True), store
        )

        result = await orchestrator.execute("hello again", "chat-1")

        assert result.image_url is None


# =========================================================================
# Planning
# =========================================================================


class TestPlanning:

    @pytest.mark.asyncio
    async def test_attachment_prefix_for_planner(self, llm_client, channel, planner):
        orchestrator = _orchestrator(llm_client, channel, planner)
        await orchestrator.execute("make it blue", "chat-1", {"input": {"imageUrl": "https://cdn/a.png"}})
        planner.plan.assert_awaited_once_with("[Attached image]\nmake it blue")

    @pytest.mark.asyncio
    async def test_planner_fallback_runs_single_step(self, llm_client, channel, planner):
        planner.plan.return_value = Plan(is_multi_step=False, fallback=True)
        result = await _orchestrator(llm_client, channel, planner).execute("hi", "chat-1")
        assert result.success is True
        assert result.multi_step is False

    @pytest.mark.asyncio
    async def test_multi_step_delivered_per_step(self, llm_client, channel, planner):
        planner.plan.return_value = Plan(is_multi_step=True, steps=[
            PlanStep(1, "Write a poem"),
            PlanStep(2, "Write a second poem"),
        ])
        orchestrator = _orchestrator(llm_client, channel, planner)

        result = await orchestrator.execute_and_deliver("two poems", "chat-1")

        assert result.multi_step is True
        assert result.already_sent is True
        assert result.steps_completed == 2
        # one delivery per step, nothing repeated at the end
        assert _texts(channel) == ["Hello there, how can I help you?"] * 2


class TestWiring:

    def test_breaker_transitions_audited(self, llm_client, channel, planner):
        manager = CircuitBreakerManager()
        orchestrator = AgentOrchestrator(llm_client, ToolRegistry(), breaker_manager=manager)
        assert manager.on_state_change == orchestrator.audit.log_breaker_transition

    def test_existing_breaker_callback_kept(self, llm_client):
        callback = MagicMock()
        manager = CircuitBreakerManager(on_state_change=callback)
        AgentOrchestrator(llm_client, ToolRegistry(), breaker_manager=manager)
        assert manager.on_state_change is callback

    def test_breaker_config_seeds_manager_defaults(self, llm_client):
        manager = CircuitBreakerManager()
        config = AgentConfig(breaker=BreakerConfig(failure_threshold=2, timeout=10.0, reset_timeout=5.0))
        AgentOrchestrator(llm_client, ToolRegistry(), config=config, breaker_manager=manager)

        breaker = manager.get_breaker("veo3_create_video")
        assert breaker.failure_threshold == 2
        assert breaker.timeout == 10.0
        assert breaker.reset_timeout == 5.0

    def test_new_session_uses_configured_model(self, llm_client):
        orchestrator = AgentOrchestrator(
            llm_client, ToolRegistry(), config=AgentConfig(model="gemini/gemini-2.5-pro"),
            breaker_manager=CircuitBreakerManager(),
        )
        session = orchestrator.new_session()
        assert session.config == {"model": "gemini/gemini-2.5-pro"}
        assert session.messages[0]["role"] == "system"
