"""
Execution context of one agent run

The context is created once per run and passed explicitly to every
component; nothing about a run lives in module state. Tool calls and
generated assets only grow during a run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..protocols import ContextStoreProtocol
from ..tools.models import ToolResult
from .models import GeneratedAssets, ToolCallLogEntry, now_ms

logger = logging.getLogger(__name__)


@dataclass
class ExecutionContext:
    """
    Mutable record shared across one agent run.

    Attributes:
        chat_id: Chat the run answers
        original_input: Inbound message payload (originalMessageId,
            quotedContext, audioAlreadyTranscribed, media URLs, ...)
        last_command: Previous command of this chat, if any
        previous_tool_results: Tool name -> most recent result in this run
        tool_calls: Ordered log of executed tool calls
        generated_assets: Images, videos, audio and polls produced so far
        suppress_final_response: A tool asked for the final text to be dropped
        started_at: Run start (epoch ms); assets older than this were loaded
            from a previous run and are never re-delivered
    """
    chat_id: Optional[str] = None
    original_input: Dict[str, Any] = field(default_factory=dict)
    last_command: Optional[Dict[str, Any]] = None
    quoted_context: Optional[Dict[str, Any]] = None
    audio_url: Optional[str] = None

    previous_tool_results: Dict[str, ToolResult] = field(default_factory=dict)
    tool_calls: List[ToolCallLogEntry] = field(default_factory=list)
    generated_assets: GeneratedAssets = field(default_factory=GeneratedAssets)

    suppress_final_response: bool = False
    started_at: int = field(default_factory=now_ms)

    @property
    def original_message_id(self) -> Optional[str]:
        return self.original_input.get("originalMessageId")

    @property
    def audio_already_transcribed(self) -> bool:
        return bool(self.original_input.get("audioAlreadyTranscribed"))

    def tool_calls_as_dicts(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.tool_calls]

    def tool_results_as_dicts(self) -> Dict[str, Any]:
        return {name: result.to_dict() for name, result in self.previous_tool_results.items()}

    def fresh_copy(self) -> "ExecutionContext":
        """New empty context for the same chat and input (isolated step runs)."""
        return ExecutionContext(
            chat_id=self.chat_id,
            original_input=self.original_input,
            last_command=self.last_command,
            quoted_context=self.quoted_context,
            audio_url=self.audio_url,
        )


class ContextManager:
    """
    Creates run contexts and persists them between runs.

    Args:
        store: Context store; persistence is skipped without one
        memory_enabled: Load and save context across runs
    """

    def __init__(self, store: Optional[ContextStoreProtocol] = None, memory_enabled: bool = False):
        self.store = store
        self.memory_enabled = memory_enabled

    def create_initial(self, chat_id: Optional[str], options: Optional[Dict[str, Any]] = None) -> ExecutionContext:
        options = options or {}
        original_input = dict(options.get("input") or {})
        quoted_context = original_input.get("quotedContext") or None
        return ExecutionContext(
            chat_id=chat_id,
            original_input=original_input,
            last_command=options.get("last_command"),
            quoted_context=quoted_context,
            audio_url=(quoted_context or {}).get("audioUrl"),
        )

    async def load_previous_context(self, context: ExecutionContext) -> ExecutionContext:
        """Merge the stored tool-call log and assets into a fresh context."""
        if not self.memory_enabled or self.store is None or not context.chat_id:
            logger.debug("[Context] Context memory disabled, starting fresh")
            return context

        stored = await self.store.get_agent_context(context.chat_id)
        if not stored:
            logger.info(f"[Context] No previous context for {context.chat_id}, starting fresh")
            return context

        previous_calls = [ToolCallLogEntry.from_dict(d) for d in stored.get("tool_calls") or []]
        context.tool_calls = previous_calls + context.tool_calls
        previous_assets = GeneratedAssets.from_dict(stored.get("generated_assets"))
        previous_assets.extend(context.generated_assets)
        context.generated_assets = previous_assets

        logger.info(
            f"[Context] Loaded previous context for {context.chat_id} "
            f"with {len(previous_calls)} tool calls"
        )
        return context

    async def save_context(self, context: ExecutionContext) -> None:
        if not self.memory_enabled or self.store is None or not context.chat_id:
            return
        await self.store.save_agent_context(context.chat_id, {
            "tool_calls": context.tool_calls_as_dicts(),
            "generated_assets": context.generated_assets.to_dict(),
        })
        logger.info(
            f"[Context] Saved context for {context.chat_id} "
            f"with {len(context.tool_calls)} tool calls"
        )
