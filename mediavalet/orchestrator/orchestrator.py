"""
MediaValet Orchestrator - Entry point of an agent run

    execute(prompt, chat_id, options)
        1. Plan: one planner call decides single- vs multi-step
        2. Multi-step: MultiStepExecution (per-step delivery, alreadySent)
        3. Single-step: fresh context (+ previous context when memory is
           enabled), fresh chat session, AgentLoop under the run timeout

A run timeout is returned as a result with ``timeout=True``, never raised.

Usage:
    orchestrator = AgentOrchestrator(
        llm_client=LiteLLMClient(LLMConfig(model="gemini/gemini-2.5-flash")),
        registry=registry,
        notifier=Notifier(GreenApiChannel(base_url, token)),
        tool_schemas=schemas,
        config=load_agent_config("config.yaml"),
    )
    result = await orchestrator.execute("Draw a cat", chat_id, {"input": {...}})
    if not result.already_sent:
        await orchestrator.result_sender.send_step_results(chat_id, result)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..channels.notifier import Notifier
from ..constants import RUN_TIMEOUT_ERROR
from ..llm.session import ChatSession
from ..protocols import ContextStoreProtocol, LLMClientProtocol, PlannerProtocol
from ..providers.circuit_breaker import CircuitBreakerManager, circuit_breaker_manager
from ..tools.registry import ToolRegistry
from .agent_loop import AgentLoop
from .audit_logger import AuditLogger
from .config import AgentConfig
from .context import ContextManager, ExecutionContext
from .models import Plan, RunResult
from .multi_step import MultiStepExecution
from .planner import StepPlanner
from .result_processor import ResultProcessor
from .result_sender import ResultSender
from .step_fallback import StepFallbackHandler
from .tool_handler import ToolHandler

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a helpful chat assistant. Use the available tools to create and "
    "edit media, answer questions and act on the user's behalf. Call each tool "
    "at most once per request unless asked otherwise, and answer in the user's "
    "language."
)

DEFAULT_STEP_INSTRUCTION = (
    "You are executing one step of a larger plan. Do only the current task, "
    "using at most the tool named for it, then reply with a short summary of "
    "the result."
)

ATTACHMENT_PREFIXES = (
    ("imageUrl", "[Attached image]"),
    ("videoUrl", "[Attached video]"),
    ("audioUrl", "[Attached audio]"),
)


class AgentOrchestrator:
    """
    Wires planner, loop, multi-step execution and delivery together.

    Args:
        llm_client: Chat-completion client for sessions and the planner
        registry: Tools and their descriptors
        notifier: Best-effort side channel (acks, inline errors, delivery)
        config: Agent configuration
        context_store: Persistence for context memory
        tool_schemas: Tool declarations offered to the model (OpenAI format)
        system_instruction: System prompt of single-step runs
        step_instruction: System prompt of isolated plan steps
        planner: Planner (defaults to StepPlanner over llm_client)
        breaker_manager: Breaker registry (defaults to the process-wide one)
        public_base_url: Prefix for relative media URLs at delivery
    """

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        registry: ToolRegistry,
        notifier: Optional[Notifier] = None,
        config: Optional[AgentConfig] = None,
        context_store: Optional[ContextStoreProtocol] = None,
        tool_schemas: Optional[List[Dict[str, Any]]] = None,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
        step_instruction: str = DEFAULT_STEP_INSTRUCTION,
        planner: Optional[PlannerProtocol] = None,
        breaker_manager: Optional[CircuitBreakerManager] = None,
        public_base_url: Optional[str] = None,
    ):
        self.llm_client = llm_client
        self.registry = registry
        self.config = config or AgentConfig()
        self.notifier = notifier or Notifier(typing_delay=self.config.typing_delay_ms)
        self.tool_schemas = tool_schemas
        self.system_instruction = system_instruction
        self.step_instruction = step_instruction
        self.planner = planner or StepPlanner(llm_client)
        self.audit = AuditLogger()

        self.breaker_manager = breaker_manager or circuit_breaker_manager
        # Breakers created before this point keep their own settings
        self.breaker_manager.defaults.update(self.config.breaker.to_dict())
        if self.breaker_manager.on_state_change is None:
            self.breaker_manager.on_state_change = self.audit.log_breaker_transition

        self.context_manager = ContextManager(
            store=context_store,
            memory_enabled=self.config.context_memory_enabled,
        )
        self.tool_handler = ToolHandler(registry, self.notifier, self.audit)
        self.result_processor = ResultProcessor()
        self.result_sender = ResultSender(self.notifier, registry, public_base_url)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def execute(
        self,
        prompt: str,
        chat_id: Optional[str],
        options: Optional[Dict[str, Any]] = None,
    ) -> RunResult:
        options = dict(options or {})
        input_data = dict(options.get("input") or {})
        input_data.setdefault("userText", prompt)
        options["input"] = input_data

        plan = await self.plan_execution(prompt, options)
        if plan.is_multi_step and len(plan.steps) > 1:
            return await self._execute_multi_step(plan, chat_id, options)
        return await self._execute_single_step(prompt, chat_id, options)

    async def execute_and_deliver(
        self,
        prompt: str,
        chat_id: Optional[str],
        options: Optional[Dict[str, Any]] = None,
    ) -> RunResult:
        """Execute, then deliver the result unless it was delivered per step."""
        result = await self.execute(prompt, chat_id, options)
        quoted = result.original_message_id
        if result.already_sent:
            return result
        if result.success:
            await self.result_sender.send_step_results(
                chat_id, result, quoted_message_id=quoted, user_text=prompt
            )
        elif result.error:
            await self.notifier.send_error(chat_id, result.error, quoted)
        return result

    async def plan_execution(self, prompt: str, options: Dict[str, Any]) -> Plan:
        input_data = options.get("input") or {}
        planner_text = prompt
        for key, prefix in ATTACHMENT_PREFIXES:
            if input_data.get(key):
                planner_text = f"{prefix}\n{prompt}"
                break

        plan = await self.planner.plan(planner_text)
        logger.info(
            f"[Orchestrator] Plan: multi_step={plan.is_multi_step}, "
            f"steps={len(plan.steps)}, fallback={plan.fallback}"
        )
        if plan.fallback:
            logger.warning("[Orchestrator] Planner failed, treating as single-step")
            return Plan(is_multi_step=False)
        return plan

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def new_session(
        self,
        system_instruction: Optional[str] = None,
        history: Optional[List[Dict[str, Any]]] = None,
    ) -> ChatSession:
        return ChatSession(
            self.llm_client,
            tools=self.tool_schemas,
            system_instruction=system_instruction or self.system_instruction,
            history=history,
            config={"model": self.config.model},
        )

    def _new_step_session(self) -> ChatSession:
        return self.new_session(system_instruction=self.step_instruction)

    # ------------------------------------------------------------------
    # Execution paths
    # ------------------------------------------------------------------

    async def _execute_multi_step(
        self,
        plan: Plan,
        chat_id: Optional[str],
        options: Dict[str, Any],
    ) -> RunResult:
        config = self.config.for_multi_step()
        step_fallback = StepFallbackHandler(
            self.tool_handler, self.notifier, config, self.breaker_manager, self.audit
        )
        execution = MultiStepExecution(
            self.tool_handler,
            self.result_sender,
            step_fallback=step_fallback,
            context_manager=self.context_manager,
            config=config,
            audit=self.audit,
        )
        try:
            return await asyncio.wait_for(
                execution.execute(plan, chat_id, options, self._new_step_session),
                timeout=config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"[Orchestrator] Multi-step run timed out after {config.timeout_seconds}s")
            return RunResult(
                success=False,
                error=RUN_TIMEOUT_ERROR,
                timeout=True,
                multi_step=True,
                plan=plan,
                total_steps=len(plan.steps),
                original_message_id=(options.get("input") or {}).get("originalMessageId"),
            )

    async def _execute_single_step(
        self,
        prompt: str,
        chat_id: Optional[str],
        options: Dict[str, Any],
    ) -> RunResult:
        context = self.context_manager.create_initial(chat_id, options)
        context = await self.context_manager.load_previous_context(context)

        session = self.new_session(history=options.get("history"))
        loop = AgentLoop(
            self.tool_handler,
            self.result_processor,
            self.context_manager,
            self.config,
            self.audit,
        )
        max_iterations = options.get("max_iterations") or self.config.max_iterations

        try:
            return await asyncio.wait_for(
                loop.run(session, prompt, context, max_iterations),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"[Orchestrator] Run timed out after {self.config.timeout_seconds}s")
            return self._timeout_result(context)

    @staticmethod
    def _timeout_result(context: ExecutionContext) -> RunResult:
        return RunResult(
            success=False,
            error=RUN_TIMEOUT_ERROR,
            timeout=True,
            tools_used=list(context.previous_tool_results),
            tool_calls=context.tool_calls_as_dicts(),
            tool_results=context.tool_results_as_dicts(),
            original_message_id=context.original_message_id,
        )
