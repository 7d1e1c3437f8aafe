"""
MediaValet - Async LLM tool orchestration for chat assistants

MediaValet runs the tool-calling core of a messaging assistant: the model
asks for tools (image/video/audio creation, polls, locations, search, ...),
MediaValet executes them safely and delivers the results to the chat.

Key Features:
- Agent loop with a duplicate-call guard and batched acknowledgments
- Plan-driven multi-step runs with isolated, tool-restricted steps
- Per-provider circuit breakers and cross-provider fallback
- Ordered, best-effort delivery (location, poll, image, video, audio, text)
- Optional context memory in Postgres (asyncpg)
- Built-in LLM client powered by litellm

Quick Start:
    from mediavalet import (
        AgentOrchestrator, GreenApiChannel, LiteLLMClient, LLMConfig,
        Notifier, ToolRegistry, load_agent_config,
    )

    registry = ToolRegistry()
    registry.register(CreateImageTool())

    orchestrator = AgentOrchestrator(
        llm_client=LiteLLMClient(LLMConfig(model="gemini/gemini-2.5-flash")),
        registry=registry,
        notifier=Notifier(GreenApiChannel(base_url, instance_token)),
        tool_schemas=[CreateImageTool.schema],
        config=load_agent_config("config.yaml"),
    )
    await orchestrator.execute_and_deliver("Draw a cat", "972500000000@c.us")
"""

__version__ = "0.1.0"

from .tools import FunctionCall, FunctionResponse, ToolRegistry, ToolResult
from .providers import (
    CircuitBreaker,
    CircuitBreakerManager,
    CircuitState,
    ProviderFallback,
    circuit_breaker_manager,
)
from .channels import GreenApiChannel, Notifier
from .llm import ChatSession, LiteLLMClient, LLMConfig
from .orchestrator import (
    AgentConfig,
    AgentLoop,
    AgentOrchestrator,
    ExecutionContext,
    FallbackPolicy,
    MultiStepExecution,
    RunResult,
    ToolHandler,
)
from .config import load_agent_config, load_config

__all__ = [
    "__version__",
    # Tools
    "FunctionCall",
    "FunctionResponse",
    "ToolRegistry",
    "ToolResult",
    # Providers
    "CircuitBreaker",
    "CircuitBreakerManager",
    "CircuitState",
    "ProviderFallback",
    "circuit_breaker_manager",
    # Channels
    "GreenApiChannel",
    "Notifier",
    # LLM
    "ChatSession",
    "LiteLLMClient",
    "LLMConfig",
    # Orchestrator
    "AgentConfig",
    "AgentLoop",
    "AgentOrchestrator",
    "ExecutionContext",
    "FallbackPolicy",
    "MultiStepExecution",
    "RunResult",
    "ToolHandler",
    # Config
    "load_agent_config",
    "load_config",
]
