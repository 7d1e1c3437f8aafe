"""
MediaValet Provider Fallback - Try one tool call across several providers

Each attempt runs through the circuit breaker of its (provider, tool) pair.
The first successful attempt wins; when every provider fails, one aggregated
error is returned, flagged ``errors_already_sent`` so callers do not notify
the user a second time. Per-provider failures are only logged.

Usage:
    fallback = ProviderFallback(
        tool_name="create_image",
        providers_to_try=["gemini", "openai", "grok"],
        chat_id=context.chat_id,
        notifier=notifier,
    )
    result = await fallback.try_with_fallback(
        lambda provider: image_service.generate(provider, prompt)
    )
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from ..channels.notifier import Notifier
from ..constants import NO_PROVIDER_ERRORS, TOOL_TRANSCRIBE_AUDIO, UNKNOWN_REASON
from ..tools.models import ToolResult
from .circuit_breaker import (
    CircuitBreakerError,
    CircuitBreakerManager,
    circuit_breaker_manager,
)
from .names import format_provider_error, format_provider_name

logger = logging.getLogger(__name__)

TryProvider = Callable[[str], Awaitable[Any]]
OnSuccess = Callable[[ToolResult, str], Any]


@dataclass
class ProviderError:
    """One failed provider attempt."""
    provider: str       # display name
    message: str


class ProviderFallback:
    """
    Tries ``providers_to_try`` in order for a single tool call.

    Args:
        tool_name: Tool being executed (also part of the breaker key)
        providers_to_try: Ordered provider keys
        requested_provider: Provider the user pinned explicitly, if any
        chat_id: Chat to acknowledge provider switches in
        notifier: Side channel for the switch acknowledgments
        original_message_id: Message to quote in acknowledgments
        audio_already_transcribed: Skip acks for transcribe_audio
        timeout: Per-attempt deadline handed to the breaker (manager default when None)
        breaker_manager: Breaker registry (defaults to the process-wide one)
    """

    def __init__(
        self,
        tool_name: str,
        providers_to_try: Sequence[str],
        requested_provider: Optional[str] = None,
        chat_id: Optional[str] = None,
        notifier: Optional[Notifier] = None,
        original_message_id: Optional[str] = None,
        audio_already_transcribed: bool = False,
        timeout: Optional[float] = None,
        breaker_manager: Optional[CircuitBreakerManager] = None,
    ):
        self.tool_name = tool_name
        self.providers_to_try = list(providers_to_try)
        self.requested_provider = requested_provider
        self.chat_id = chat_id
        self.notifier = notifier
        self.original_message_id = original_message_id
        self.audio_already_transcribed = audio_already_transcribed
        self.timeout = timeout
        self.breaker_manager = breaker_manager or circuit_breaker_manager
        self.error_stack: List[ProviderError] = []

    @classmethod
    def for_context(cls, tool_name: str, providers_to_try: Sequence[str], context: Any, **kwargs: Any) -> "ProviderFallback":
        """Build a fallback bound to an ExecutionContext's chat and quoting info."""
        original_input = getattr(context, "original_input", None) or {}
        kwargs.setdefault("chat_id", getattr(context, "chat_id", None))
        kwargs.setdefault("original_message_id", original_input.get("originalMessageId"))
        kwargs.setdefault("audio_already_transcribed", bool(original_input.get("audioAlreadyTranscribed")))
        return cls(tool_name, providers_to_try, **kwargs)

    async def try_with_fallback(
        self,
        try_provider: TryProvider,
        on_success: Optional[OnSuccess] = None,
    ) -> ToolResult:
        """Run ``try_provider(provider)`` for each provider until one succeeds."""
        for idx, provider in enumerate(self.providers_to_try):
            if not provider:
                continue

            logger.debug(
                f"[ProviderFallback] {self.tool_name}: trying {provider} "
                f"({idx + 1}/{len(self.providers_to_try)})"
            )

            overrides = {"timeout": self.timeout} if self.timeout is not None else {}
            breaker = self.breaker_manager.get_breaker(f"{provider}_{self.tool_name}", **overrides)

            if breaker.is_open():
                logger.warning(
                    f"[ProviderFallback] Circuit breaker OPEN for {provider}, "
                    f"next attempt at {breaker.next_attempt_time}"
                )
                self._record_error(
                    provider,
                    f"Service {format_provider_name(provider)} is temporarily unavailable "
                    f"(circuit breaker open)",
                )
                continue

            if idx > 0 and self.chat_id:
                from ..channels.acks import provider_ack_call, send_tool_ack_message

                skip = (TOOL_TRANSCRIBE_AUDIO,) if self.audio_already_transcribed else ()
                await send_tool_ack_message(
                    self.notifier,
                    self.chat_id,
                    [provider_ack_call(self.tool_name, provider)],
                    quoted_message_id=self.original_message_id,
                    skip_tools=skip,
                )

            try:
                raw = await breaker.execute(lambda: try_provider(provider))
            except CircuitBreakerError as e:
                self._record_error(provider, str(e))
                continue
            except Exception as e:
                logger.error(
                    f"[ProviderFallback] {self.tool_name}: {provider} raised: {e}",
                    exc_info=True,
                )
                self._record_error(provider, str(e) or UNKNOWN_REASON)
                continue

            result = ToolResult.from_raw(raw)

            # Text without media is a valid answer, not a failure
            if result.text_only:
                return await self._succeed(result, provider, on_success)

            if result.error:
                self._record_error(provider, result.error)
                continue

            return await self._succeed(result, provider, on_success)

        return self._build_final_error()

    async def _succeed(self, result: ToolResult, provider: str, on_success: Optional[OnSuccess]) -> ToolResult:
        logger.info(f"[ProviderFallback] {self.tool_name}: {provider} succeeded")
        if on_success is None:
            return result
        transformed = on_success(result, provider)
        if inspect.isawaitable(transformed):
            transformed = await transformed
        return ToolResult.from_raw(transformed)

    def _record_error(self, provider: str, message: str) -> None:
        if not provider or not message:
            return
        name = format_provider_name(provider) or provider
        self.error_stack.append(ProviderError(provider=name, message=message))
        logger.warning(f"[ProviderFallback] {self.tool_name}: {name} failed: {message}")

    def _build_final_error(self) -> ToolResult:
        if self.requested_provider:
            first = self.error_stack[0].message if self.error_stack else UNKNOWN_REASON
            return ToolResult(
                success=False,
                error=format_provider_error(self.requested_provider, first),
                errors_already_sent=True,
            )

        if self.error_stack:
            details = "\n".join(f"• {e.provider}: {e.message}" for e in self.error_stack)
        else:
            details = NO_PROVIDER_ERRORS

        operation = "create" if "create" in self.tool_name else "edit"
        if "image" in self.tool_name:
            asset = "image"
        elif "video" in self.tool_name:
            asset = "video"
        else:
            asset = "asset"

        return ToolResult(
            success=False,
            error=f"All providers failed to {operation} the {asset}:\n{details}",
            errors_already_sent=True,
        )
