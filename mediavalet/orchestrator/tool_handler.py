"""
MediaValet Tool Handler - Executes one LLM turn's batch of tool calls

For every batch:
1. Duplicate guard: single-use creation tools run at most once successfully
   per run; identical (name, args) calls are refused unless the tool is
   stochastic. Refused calls still get a response.
2. One acknowledgment per not-yet-acknowledged tool name.
3. Surviving calls run concurrently. Results are recorded into the
   ExecutionContext (previous results, tool-call log, generated assets).

A failing tool never raises out of the handler; exceptions become
``success=False`` results.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..channels.acks import send_tool_ack_message
from ..channels.notifier import Notifier
from ..constants import (
    CREATION_ALREADY_SUCCEEDED_ERROR,
    DUPLICATE_CALL_ERROR,
    TOOL_TRANSCRIBE_AUDIO,
)
from ..tools.models import FunctionCall, FunctionResponse, ToolResult, poll_options
from ..tools.registry import ToolRegistry
from .audit_logger import AuditLogger, summarize_args
from .context import ExecutionContext
from .models import AudioAsset, ImageAsset, PollAsset, ToolCallLogEntry, VideoAsset

logger = logging.getLogger(__name__)


def call_key(name: str, args: Optional[Dict[str, Any]]) -> Tuple[str, str]:
    """Identity of a call for duplicate detection."""
    return name, json.dumps(args or {}, sort_keys=True, ensure_ascii=False, default=str)


class ToolHandler:
    """
    Executes tool-call batches against a ToolRegistry.

    Args:
        registry: Tools and their descriptors
        notifier: Side channel for acks and inline error messages
        audit: Structured audit logger
    """

    def __init__(
        self,
        registry: ToolRegistry,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.registry = registry
        self.notifier = notifier or Notifier()
        self.audit = audit or AuditLogger()

    async def execute_batch(
        self,
        calls: Sequence[FunctionCall],
        context: ExecutionContext,
        acked_tools: Set[str],
        succeeded_creation_tools: Set[str],
    ) -> List[FunctionResponse]:
        """Execute one turn's calls; returns one response per call, in request order."""
        logger.debug(f"[ToolHandler] Processing {len(calls)} function call(s)")

        decisions = self.filter_duplicate_calls(calls, context, succeeded_creation_tools)
        allowed = [call for call, reason in decisions if reason is None]

        if not allowed:
            logger.debug("[ToolHandler] All function calls were blocked duplicates")
        else:
            await self._send_acks(allowed, context, acked_tools)

        executed = await asyncio.gather(*[
            self.execute_tool(call, context, succeeded_creation_tools) for call in allowed
        ])
        executed_iter = iter(executed)

        responses: List[FunctionResponse] = []
        for call, reason in decisions:
            if reason is None:
                responses.append(next(executed_iter))
            else:
                responses.append(FunctionResponse(
                    name=call.name,
                    response={"success": False, "error": reason},
                    id=call.id,
                ))

        if executed:
            ok = sum(1 for r in executed if r.response.get("success") is not False)
            logger.debug(f"[ToolHandler] Batch execution: {ok} succeeded, {len(executed) - ok} failed")
        return responses

    # ------------------------------------------------------------------
    # Duplicate guard
    # ------------------------------------------------------------------

    def filter_duplicate_calls(
        self,
        calls: Sequence[FunctionCall],
        context: ExecutionContext,
        succeeded_creation_tools: Set[str],
    ) -> List[Tuple[FunctionCall, Optional[str]]]:
        """Pair each call with a block reason, or None when it may run."""
        previous = {call_key(entry.tool, entry.args) for entry in context.tool_calls}
        batch_keys: Set[Tuple[str, str]] = set()
        batch_creation: Set[str] = set()

        decisions: List[Tuple[FunctionCall, Optional[str]]] = []
        for call in calls:
            reason: Optional[str] = None
            key = call_key(call.name, call.args)
            is_creation = self.registry.is_creation(call.name)

            if is_creation and call.name in succeeded_creation_tools:
                logger.warning(f"[ToolHandler] Blocking {call.name}: already succeeded in this run")
                reason = CREATION_ALREADY_SUCCEEDED_ERROR.format(tool=call.name)
            elif is_creation and call.name in batch_creation:
                logger.warning(f"[ToolHandler] Blocking second {call.name} call in the same batch")
                reason = DUPLICATE_CALL_ERROR
            elif (key in previous or key in batch_keys) and not self.registry.is_stochastic(call.name):
                logger.warning(f"[ToolHandler] Blocking duplicate tool call: {call.name} with identical args")
                reason = DUPLICATE_CALL_ERROR

            if reason is None:
                batch_keys.add(key)
                if is_creation:
                    batch_creation.add(call.name)
            else:
                self.audit.log_duplicate_blocked(call.name, reason, chat_id=context.chat_id)
            decisions.append((call, reason))
        return decisions

    async def _send_acks(
        self,
        calls: Sequence[FunctionCall],
        context: ExecutionContext,
        acked_tools: Set[str],
    ) -> None:
        needing_ack = []
        seen: Set[str] = set(acked_tools)
        for call in calls:
            if call.name not in seen:
                seen.add(call.name)
                needing_ack.append(call)
        if not needing_ack:
            logger.debug("[ToolHandler] All tools already acknowledged")
            return

        skip = (TOOL_TRANSCRIBE_AUDIO,) if context.audio_already_transcribed else ()
        await send_tool_ack_message(
            self.notifier,
            context.chat_id,
            needing_ack,
            quoted_message_id=context.original_message_id,
            skip_tools=skip,
        )
        acked_tools.update(call.name for call in needing_ack)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def invoke(self, name: str, args: Dict[str, Any], context: Any) -> ToolResult:
        """Run one tool; unknown tools and exceptions become failure results."""
        tool = self.registry.get(name)
        if tool is None:
            logger.error(f"[ToolHandler] Unknown tool: {name}")
            return ToolResult.failure(f"Unknown tool: {name}")

        started = time.monotonic()
        try:
            result = ToolResult.from_raw(await tool.execute(args, context))
        except Exception as e:
            logger.error(f"[ToolHandler] Error executing tool {name}: {e}", exc_info=True)
            result = ToolResult.failure(f"Tool execution failed: {e}")

        self.audit.log_tool_execution(
            tool_name=name,
            args_summary=summarize_args(args),
            success=not result.failed,
            duration_ms=int((time.monotonic() - started) * 1000),
            error=result.error,
            chat_id=getattr(context, "chat_id", None),
        )
        return result

    async def execute_tool(
        self,
        call: FunctionCall,
        context: ExecutionContext,
        succeeded_creation_tools: Set[str],
    ) -> FunctionResponse:
        name = call.name
        args = call.args or {}
        logger.debug(f"[ToolHandler] Calling tool: {name} with args: {summarize_args(args)}")

        result = await self.invoke(name, args, context)
        if name in self.registry:
            await self._notify_user_of_error(result, context)
        self.record_result(context, name, args, result, succeeded_creation_tools)
        return FunctionResponse(name=name, response=result.to_dict(), id=call.id)

    def record_result(
        self,
        context: ExecutionContext,
        name: str,
        args: Dict[str, Any],
        result: ToolResult,
        succeeded_creation_tools: Set[str],
    ) -> None:
        """Log the call on the context and track what it produced."""
        context.previous_tool_results[name] = result
        if result.suppress_final_response:
            context.suppress_final_response = True

        context.tool_calls.append(ToolCallLogEntry(
            tool=name,
            args=dict(args),
            success=not result.failed,
            error=result.error if result.failed else None,
        ))

        if self.registry.is_creation(name) and not result.failed:
            succeeded_creation_tools.add(name)
            logger.debug(f"[ToolHandler] Marked {name} as succeeded")

        self.track_generated_assets(context, name, args, result)

    async def _notify_user_of_error(self, result: ToolResult, context: ExecutionContext) -> None:
        should_send = (
            result.error
            and context.chat_id
            and not result.errors_already_sent
            and not result.suppress_final_response
        )
        if should_send:
            await self.notifier.send_error(context.chat_id, result.error, context.original_message_id)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    @staticmethod
    def track_generated_assets(
        context: ExecutionContext,
        name: str,
        args: Dict[str, Any],
        result: ToolResult,
    ) -> None:
        """Append whatever the result produced to the context's asset lists."""
        assets = context.generated_assets

        if result.image_url:
            caption = (
                result.image_caption or result.caption or result.description
                or result.revised_prompt or ""
            )
            logger.debug(f"[ToolHandler] Tracking image: {result.image_url}")
            assets.images.append(ImageAsset(
                url=result.image_url,
                caption=caption,
                prompt=args.get("prompt"),
                provider=result.provider or args.get("provider"),
            ))

        if result.video_url:
            caption = result.video_caption or result.caption or result.description or ""
            assets.videos.append(VideoAsset(
                url=result.video_url,
                caption=caption,
                prompt=args.get("prompt"),
                provider=result.provider or args.get("provider"),
            ))

        if result.audio_url:
            assets.audio.append(AudioAsset(
                url=result.audio_url,
                prompt=args.get("prompt") or args.get("text_to_speak") or args.get("text"),
            ))

        if result.poll:
            assets.polls.append(PollAsset(
                question=result.poll.get("question", ""),
                options=poll_options(result.poll),
                topic=args.get("topic"),
            ))
