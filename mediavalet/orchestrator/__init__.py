"""
MediaValet Orchestrator Module

Drives LLM tool-calling runs for a chat assistant:
- Single conversational runs (AgentLoop) bounded by max_iterations
- Plan-driven multi-step runs with isolated, tool-restricted steps
- Duplicate-call guard and batched acknowledgments (ToolHandler)
- Bounded provider fallback for failed creation steps
- Ordered, best-effort delivery of assets and text (ResultSender)
- Optional context memory across runs of the same chat

Quick Start:
    from mediavalet.orchestrator import AgentOrchestrator, AgentConfig

    orchestrator = AgentOrchestrator(
        llm_client=llm_client,
        registry=registry,
        notifier=notifier,
        tool_schemas=schemas,
        config=AgentConfig(max_iterations=8),
    )
    result = await orchestrator.execute_and_deliver("Draw a cat", chat_id)

Audit trail:
    Every tool execution, blocked duplicate, loop turn, plan step, breaker
    transition and exhausted fallback is written as one JSON line to the
    "mediavalet.audit" logger.
"""

from .config import AgentConfig, BreakerConfig, FallbackPolicy
from .models import (
    AudioAsset,
    GeneratedAssets,
    ImageAsset,
    Plan,
    PlanStep,
    PollAsset,
    RunResult,
    ToolCallLogEntry,
    VideoAsset,
)
from .audit_logger import AuditLogger
from .context import ContextManager, ExecutionContext
from .tool_handler import ToolHandler, call_key
from .result_processor import ResultProcessor
from .result_sender import ResultSender, is_caption_duplicate
from .agent_loop import AgentLoop
from .single_step import execute_single_step
from .step_fallback import StepFallbackHandler
from .multi_step import MultiStepExecution, build_step_prompt, summarize_previous_steps
from .planner import StepPlanner
from .orchestrator import AgentOrchestrator

__all__ = [
    # Config
    "AgentConfig",
    "BreakerConfig",
    "FallbackPolicy",
    # Models
    "AudioAsset",
    "GeneratedAssets",
    "ImageAsset",
    "Plan",
    "PlanStep",
    "PollAsset",
    "RunResult",
    "ToolCallLogEntry",
    "VideoAsset",
    # Execution
    "AuditLogger",
    "ContextManager",
    "ExecutionContext",
    "ToolHandler",
    "call_key",
    "ResultProcessor",
    "ResultSender",
    "is_caption_duplicate",
    "AgentLoop",
    "execute_single_step",
    "StepFallbackHandler",
    "MultiStepExecution",
    "build_step_prompt",
    "summarize_previous_steps",
    "StepPlanner",
    "AgentOrchestrator",
]
