"""
MediaValet Agent Loop - Single conversational run

    AwaitingModel -> (no tool calls) -> Done
                  -> (tool calls)    -> Executing -> AwaitingModel

bounded by ``max_iterations``. Tool failures are reported inline and never
end the loop; reaching the iteration bound is its only failure outcome.
"""

import logging
from typing import Optional, Set

from ..constants import MAX_ITERATIONS_ERROR
from ..protocols import ChatSessionProtocol
from .audit_logger import AuditLogger
from .config import AgentConfig
from .context import ContextManager, ExecutionContext
from .models import RunResult
from .result_processor import ResultProcessor
from .tool_handler import ToolHandler

logger = logging.getLogger(__name__)


class AgentLoop:
    """
    Drives one chat session until the model answers without tool calls.

    The acknowledged-tools and succeeded-creation-tools sets live for one
    ``run`` call only, so a single AgentLoop can serve concurrent runs.
    """

    def __init__(
        self,
        tool_handler: ToolHandler,
        result_processor: Optional[ResultProcessor] = None,
        context_manager: Optional[ContextManager] = None,
        config: Optional[AgentConfig] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.tool_handler = tool_handler
        self.result_processor = result_processor or ResultProcessor()
        self.context_manager = context_manager or ContextManager()
        self.config = config or AgentConfig()
        self.audit = audit or tool_handler.audit

    async def run(
        self,
        session: ChatSessionProtocol,
        prompt: str,
        context: ExecutionContext,
        max_iterations: Optional[int] = None,
    ) -> RunResult:
        max_iterations = max_iterations or self.config.max_iterations
        acked_tools: Set[str] = set()
        succeeded_creation_tools: Set[str] = set()

        response = await session.send_message(prompt)
        iteration = 0

        while iteration < max_iterations:
            iteration += 1
            logger.debug(f"[AgentLoop] Iteration {iteration}/{max_iterations}")

            calls = response.function_calls() or []
            if not calls:
                logger.info(f"[AgentLoop] Completed in {iteration} iterations")
                self.audit.log_loop_turn(iteration, [], final_answer=True, chat_id=context.chat_id)
                await self.context_manager.save_context(context)
                return self.result_processor.process_result(response.text(), context, iteration)

            self.audit.log_loop_turn(
                iteration, [c.name for c in calls], final_answer=False, chat_id=context.chat_id
            )
            responses = await self.tool_handler.execute_batch(
                calls, context, acked_tools, succeeded_creation_tools
            )
            response = await session.send_message(responses)

        logger.warning(f"[AgentLoop] Max iterations ({max_iterations}) reached")
        return RunResult(
            success=False,
            error=MAX_ITERATIONS_ERROR,
            tools_used=list(context.previous_tool_results),
            iterations=iteration,
            tool_calls=context.tool_calls_as_dicts(),
            tool_results=context.tool_results_as_dicts(),
            original_message_id=context.original_message_id,
        )
