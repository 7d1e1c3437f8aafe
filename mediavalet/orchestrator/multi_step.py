"""
MediaValet Multi-Step Execution - Plan-driven runs

Steps run strictly in order. Each step:
1. Is acknowledged once if it names a tool
2. Gets a prompt carrying a short summary of the previous steps
3. Runs as an isolated single step restricted to its tool
4. Has its results delivered immediately (no batching at the end), or on
   failure gets a bounded provider fallback / an error message

A failing or raising step never aborts the plan.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..channels.acks import send_tool_ack_message
from ..channels.notifier import Notifier
from ..constants import TOOL_TRANSCRIBE_AUDIO, UNKNOWN_REASON
from ..protocols import ChatSessionProtocol
from .audit_logger import AuditLogger
from .config import AgentConfig
from .context import ContextManager
from .models import Plan, PlanStep, RunResult
from .result_processor import ResultProcessor
from .result_sender import ResultSender
from .single_step import execute_single_step
from .step_fallback import StepFallbackHandler
from .tool_handler import ToolHandler

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ChatSessionProtocol]

STEP_SUMMARY_TEXT_CHARS = 200


def summarize_previous_steps(step_results: List[RunResult]) -> str:
    """One line per finished step: its text (truncated) and what it produced."""
    lines = []
    for idx, res in enumerate(step_results):
        summary = f"Step {idx + 1}:"
        if res.text:
            summary += f" {res.text[:STEP_SUMMARY_TEXT_CHARS]}"
        if res.image_url:
            summary += " [Created image]"
        if res.video_url:
            summary += " [Created video]"
        if res.audio_url:
            summary += " [Created audio]"
        if res.poll:
            summary += f" [Created poll: \"{res.poll.get('question', '')}\"]"
        if res.has_location:
            summary += " [Sent location]"
        lines.append(summary)
    return "\n".join(lines)


def build_step_prompt(step: PlanStep, step_results: List[RunResult]) -> str:
    prompt = step.action
    if step_results:
        prompt = (
            f"CONTEXT from previous steps:\n{summarize_previous_steps(step_results)}"
            f"\n\nCURRENT TASK: {step.action}"
        )
    if step.tool and step.parameters:
        params = ", ".join(f"{key}: {value}" for key, value in step.parameters.items())
        prompt = f"{prompt}\n\nTool: {step.tool}\nParameters: {params}"
    return prompt


class MultiStepExecution:
    """
    Executes a Plan step by step.

    Args:
        tool_handler: Tool invocation and asset tracking
        result_sender: Per-step delivery
        step_fallback: Provider retry for failed creation steps
        context_manager: Builds the isolated context of each step
        config: Step iteration bound
        audit: Step outcomes
    """

    def __init__(
        self,
        tool_handler: ToolHandler,
        result_sender: ResultSender,
        step_fallback: Optional[StepFallbackHandler] = None,
        context_manager: Optional[ContextManager] = None,
        config: Optional[AgentConfig] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.tool_handler = tool_handler
        self.result_sender = result_sender
        self.notifier: Notifier = result_sender.notifier
        self.config = config or AgentConfig()
        self.step_fallback = step_fallback or StepFallbackHandler(
            tool_handler, self.notifier, self.config
        )
        self.context_manager = context_manager or ContextManager()
        self.audit = audit or tool_handler.audit

    async def execute(
        self,
        plan: Plan,
        chat_id: Optional[str],
        options: Optional[Dict[str, Any]],
        session_factory: SessionFactory,
    ) -> RunResult:
        options = options or {}
        original_input = options.get("input") or {}
        quoted_message_id = original_input.get("originalMessageId")
        user_text = original_input.get("userText")
        total = len(plan.steps)

        logger.info(f"[MultiStep] Executing plan with {total} steps")
        step_results: List[RunResult] = []

        for step in plan.steps:
            if step.tool:
                skip = (TOOL_TRANSCRIBE_AUDIO,) if original_input.get("audioAlreadyTranscribed") else ()
                await send_tool_ack_message(
                    self.notifier,
                    chat_id,
                    [{"name": step.tool, "args": step.parameters}],
                    quoted_message_id=quoted_message_id,
                    skip_tools=skip,
                )

            prompt = build_step_prompt(step, step_results)
            success = False
            try:
                logger.debug(f"[MultiStep] Executing step {step.step_number}/{total}: {step.action}")
                step_context = self.context_manager.create_initial(chat_id, options)
                step_result = await execute_single_step(
                    session_factory(),
                    prompt,
                    step_context,
                    self.tool_handler,
                    expected_tool=step.tool,
                    max_iterations=self.config.step_max_iterations,
                )

                if step_result.success:
                    success = True
                    step_results.append(step_result)
                    await self.result_sender.send_step_results(
                        chat_id, step_result, step.step_number, quoted_message_id, user_text
                    )
                    logger.info(f"[MultiStep] Step {step.step_number}/{total} completed and sent")
                else:
                    logger.error(
                        f"[MultiStep] Step {step.step_number}/{total} failed: {step_result.error}"
                    )
                    success = await self._handle_failed_step(
                        chat_id, step, step_result, step_context, quoted_message_id, step_results
                    )
            except Exception as e:
                logger.error(f"[MultiStep] Error executing step {step.step_number}: {e}", exc_info=True)
                await self.notifier.send_text(
                    chat_id,
                    f"❌ Error executing step {step.step_number}: {str(e) or UNKNOWN_REASON}",
                    quoted_message_id,
                )

            self.audit.log_step_completed(step.step_number, step.tool, success, chat_id=chat_id)

        logger.info(f"[MultiStep] Completed: {len(step_results)}/{total} steps successful")

        tools_used: List[str] = []
        for res in step_results:
            tools_used.extend(res.tools_used)

        return RunResult(
            success=True,
            text=ResultProcessor.process_final_text(step_results),
            tools_used=tools_used,
            iterations=sum(res.iterations for res in step_results),
            multi_step=True,
            plan=plan,
            steps_completed=len(step_results),
            total_steps=total,
            already_sent=True,
            original_message_id=quoted_message_id,
        )

    async def _handle_failed_step(
        self,
        chat_id: Optional[str],
        step: PlanStep,
        step_result: RunResult,
        step_context: Any,
        quoted_message_id: Optional[str],
        step_results: List[RunResult],
    ) -> bool:
        """Fallback or report; returns True when a replacement result was produced."""
        if self.step_fallback.should_attempt(step.tool, step.parameters or {}):
            replacement = await self.step_fallback.try_fallback(
                chat_id, step, step_result, step_context, quoted_message_id
            )
            if replacement is not None:
                step_results.append(replacement)
                return True
            return False

        await self.notifier.send_error(chat_id, step_result.error or UNKNOWN_REASON, quoted_message_id)
        return False
