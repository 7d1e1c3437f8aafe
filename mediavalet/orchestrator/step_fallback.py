"""
MediaValet Step Fallback - Bounded provider retry for a failed plan step

Only single-media creation/edit tools are retried, and only when the user
pinned a provider or service for the step: without a pin, tools with an
internal fallback have already tried every provider. Under
``FallbackPolicy.STRICT`` no retry happens and the tool's own error stands.

Retries go through ProviderFallback (circuit breakers included) without
acknowledgments; the step was acknowledged before it ran. The user sees
either the replacement media or a single "all providers failed" message.
"""

import logging
from typing import Any, Dict, List, Optional

from ..channels.notifier import Notifier
from ..constants import (
    DEFAULT_IMAGE_PROVIDER,
    IMAGE_PROVIDERS,
    TOOL_EDIT_IMAGE,
    TOOL_EDIT_VIDEO,
    VIDEO_PROVIDERS,
)
from ..providers.circuit_breaker import CircuitBreakerManager
from ..providers.fallback import ProviderFallback
from ..text.cleaning import clean_json_wrapper, clean_media_description
from ..tools.models import ToolResult
from ..tools.registry import MediaKind
from .audit_logger import AuditLogger
from .config import AgentConfig, FallbackPolicy
from .context import ExecutionContext
from .models import PlanStep, RunResult, now_ms
from .result_sender import CAPTION_FILLER_CHARS
from .tool_handler import ToolHandler

logger = logging.getLogger(__name__)


class StepFallbackHandler:
    """
    Retries a failed creation step on the other providers of its media kind.

    Args:
        tool_handler: Invokes tools and exposes the registry
        notifier: Delivery of the replacement media and the final failure
        config: Fallback policy and breaker settings
        breaker_manager: Breaker registry handed to ProviderFallback
        audit: Records exhausted fallbacks
    """

    def __init__(
        self,
        tool_handler: ToolHandler,
        notifier: Optional[Notifier] = None,
        config: Optional[AgentConfig] = None,
        breaker_manager: Optional[CircuitBreakerManager] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.tool_handler = tool_handler
        self.registry = tool_handler.registry
        self.notifier = notifier or tool_handler.notifier
        self.config = config or AgentConfig()
        self.breaker_manager = breaker_manager
        self.audit = audit or tool_handler.audit

    def should_attempt(self, tool_name: Optional[str], params: Dict[str, Any]) -> bool:
        if not tool_name or not self.registry.supports_step_fallback(tool_name):
            return False
        if self.config.fallback_policy == FallbackPolicy.STRICT:
            logger.info(f"[StepFallback] Strict policy, not switching provider for {tool_name}")
            return False
        pinned = bool(params.get("provider") or params.get("service"))
        if self.registry.has_internal_fallback(tool_name) and not pinned:
            logger.warning(
                f"[StepFallback] {tool_name} already tried every provider internally, skipping"
            )
            return False
        return True

    def providers_to_try(self, tool_name: str, params: Dict[str, Any]) -> List[str]:
        """Per-kind provider list without the provider that just failed."""
        avoid = params.get("provider") or params.get("service") or DEFAULT_IMAGE_PROVIDER
        kind = self.registry.media_kind(tool_name)
        providers = IMAGE_PROVIDERS if kind == MediaKind.IMAGE else VIDEO_PROVIDERS
        return [p for p in providers if p != avoid]

    @staticmethod
    def build_args(tool_name: str, provider: str, step: PlanStep) -> Dict[str, Any]:
        params = step.parameters or {}
        prompt = params.get("prompt") or params.get("text") or step.action
        if tool_name == TOOL_EDIT_IMAGE:
            return {"image_url": params.get("image_url"), "edit_instruction": prompt, "service": provider}
        if tool_name == TOOL_EDIT_VIDEO:
            return {"video_url": params.get("video_url"), "edit_instruction": prompt, "provider": provider}
        return {"prompt": prompt, "provider": provider}

    async def try_fallback(
        self,
        chat_id: Optional[str],
        step: PlanStep,
        step_result: RunResult,
        context: ExecutionContext,
        quoted_message_id: Optional[str] = None,
    ) -> Optional[RunResult]:
        """
        Retry the step's tool; returns the replacement result or None.

        A None return after an attempted fallback means the failure was
        already reported to the user.
        """
        tool_name = step.tool
        params = step.parameters or {}
        if not self.should_attempt(tool_name, params):
            return None

        if step_result.error:
            logger.debug(f"[StepFallback] Initial error: {step_result.error}")

        providers = self.providers_to_try(tool_name, params)
        logger.info(f"[StepFallback] Retrying {tool_name} with {providers}")

        async def attempt(provider: str) -> ToolResult:
            args = self.build_args(tool_name, provider, step)
            return await self.tool_handler.invoke(tool_name, args, context.fresh_copy())

        fallback = ProviderFallback(
            tool_name,
            providers,
            timeout=self.config.breaker.timeout,
            breaker_manager=self.breaker_manager,
        )
        result = await fallback.try_with_fallback(attempt)

        if result.failed:
            logger.warning(f"[StepFallback] All providers failed for {tool_name}")
            self.audit.log_fallback_exhausted(tool_name, providers, chat_id=chat_id)
            await self.notifier.send_text(
                chat_id, f"❌ All providers failed for {tool_name}", quoted_message_id
            )
            return None

        await self._deliver(chat_id, result, quoted_message_id)
        return self._to_step_result(tool_name, result, quoted_message_id)

    async def _deliver(self, chat_id: Optional[str], result: ToolResult, quoted_message_id: Optional[str]) -> None:
        text = result.data_text()
        media = []
        if result.image_url:
            media.append((result.image_url, result.image_caption, f"agent_image_{now_ms()}.png"))
        if result.video_url:
            media.append((result.video_url, result.video_caption, f"agent_video_{now_ms()}.mp4"))

        for url, explicit, file_name in media:
            caption = explicit or result.caption or text
            clean_caption = clean_media_description(caption or "")
            await self.notifier.send_file(chat_id, url, file_name, clean_caption, quoted_message_id)

            if text.strip():
                text_check = clean_media_description(text)
                if (
                    text_check.strip() != clean_caption.strip()
                    and len(text_check) > len(clean_caption) + CAPTION_FILLER_CHARS
                ):
                    extra = clean_json_wrapper(text).strip()
                    if extra:
                        await self.notifier.send_text(chat_id, extra, quoted_message_id)

        if not media and text.strip():
            await self.notifier.send_text(chat_id, text.strip(), quoted_message_id)

    @staticmethod
    def _to_step_result(tool_name: str, result: ToolResult, quoted_message_id: Optional[str]) -> RunResult:
        return RunResult(
            success=True,
            text=result.data_text(),
            image_url=result.image_url,
            image_caption=result.image_caption or result.caption or "",
            video_url=result.video_url,
            video_caption=result.video_caption or result.caption or "",
            tools_used=[tool_name],
            iterations=1,
            tool_results={tool_name: result.to_dict()},
            original_message_id=quoted_message_id,
        )
