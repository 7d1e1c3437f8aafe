"""
Single step execution

Runs one plan step as an isolated session: no conversational history, and
when the step names a target tool, only that tool may run, exactly once.
Any other call, and any repeat the duplicate guard rejects, is answered with
a blocked error instead of being executed.
Once the target has run, the session is asked for its concluding text and
the step ends.
"""

import logging
from typing import List, Optional, Set

from ..constants import STEP_TOOL_RESTRICTED_ERROR
from ..protocols import ChatSessionProtocol
from ..tools.models import FunctionResponse
from .context import ExecutionContext
from .models import RunResult
from .result_processor import ResultProcessor
from .tool_handler import ToolHandler

logger = logging.getLogger(__name__)


def _blocked(name: str, error: str, call_id: Optional[str]) -> FunctionResponse:
    return FunctionResponse(
        name=name,
        response={"success": False, "error": error, "blocked": True},
        id=call_id,
    )


async def execute_single_step(
    session: ChatSessionProtocol,
    prompt: str,
    context: ExecutionContext,
    tool_handler: ToolHandler,
    expected_tool: Optional[str] = None,
    max_iterations: int = 5,
    result_processor: Optional[ResultProcessor] = None,
) -> RunResult:
    """
    Execute one step.

    Args:
        session: A fresh session for this step
        prompt: Step prompt (prior-step summary, task, parameter hint)
        context: Isolated context for this step
        tool_handler: Used to invoke tools and record assets
        expected_tool: Only tool the step may call, if any
        max_iterations: Maximum model turns for the step

    Exceptions raised by the session propagate to the caller.
    """
    result_processor = result_processor or ResultProcessor()
    tools_used: List[str] = []
    error: Optional[str] = None
    target_executed = False
    succeeded_creation_tools: Set[str] = set()
    text = ""

    response = await session.send_message(prompt)
    iterations = 0

    while iterations < max_iterations:
        iterations += 1
        calls = response.function_calls() or []
        if not calls:
            text = response.text()
            break

        candidates = [call for call in calls if not expected_tool or call.name == expected_tool]
        dedup_reasons = iter([
            reason for _, reason in tool_handler.filter_duplicate_calls(
                candidates, context, succeeded_creation_tools
            )
        ])

        responses: List[FunctionResponse] = []
        for call in calls:
            if expected_tool and call.name != expected_tool:
                logger.warning(
                    f"[SingleStep] Blocking unexpected tool call: {call.name} (expected: {expected_tool})"
                )
                responses.append(_blocked(
                    call.name, STEP_TOOL_RESTRICTED_ERROR.format(tool=expected_tool), call.id
                ))
                continue
            duplicate_reason = next(dedup_reasons)
            if target_executed:
                logger.warning(f"[SingleStep] Target tool {expected_tool} already executed, blocking repeat")
                responses.append(_blocked(
                    call.name, f"{expected_tool} was already executed for this step.", call.id
                ))
                continue
            if duplicate_reason:
                responses.append(_blocked(call.name, duplicate_reason, call.id))
                continue

            args = call.args or {}
            tools_used.append(call.name)
            result = await tool_handler.invoke(call.name, args, context)
            tool_handler.record_result(context, call.name, args, result, succeeded_creation_tools)
            if result.failed:
                error = result.error or f"{call.name} failed"

            responses.append(FunctionResponse(name=call.name, response=result.to_dict(), id=call.id))
            if expected_tool:
                target_executed = True

        response = await session.send_message(responses)
        if target_executed:
            text = response.text()
            break
    else:
        logger.warning(f"[SingleStep] Max iterations ({max_iterations}) reached")
        text = response.text()

    step_result = result_processor.process_result(text, context, iterations)
    step_result.tools_used = tools_used
    step_result.success = error is None
    step_result.error = error
    return step_result
