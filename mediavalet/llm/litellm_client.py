"""
MediaValet LiteLLM Client - Chat-completion client powered by litellm

One client covers every provider litellm routes to (OpenAI, Gemini,
Anthropic, Azure, Ollama, ...). Provider selection happens through the
litellm model string, e.g. "gemini/gemini-2.5-flash".
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .base import (
    BaseLLMClient,
    LLMConfig,
    LLMResponse,
    StopReason,
    ToolCall,
    Usage,
)

logger = logging.getLogger(__name__)


class LiteLLMClient(BaseLLMClient):
    """
    Chat-completion client that delegates to ``litellm.acompletion``.

    Example:
        from mediavalet.llm import LiteLLMClient, LLMConfig

        client = LiteLLMClient(LLMConfig(model="gemini/gemini-2.5-flash"))
        response = await client.chat_completion([
            {"role": "user", "content": "Hello!"}
        ])
    """

    provider = "litellm"

    def __init__(self, config: Optional[LLMConfig] = None, **kwargs):
        if config is None and "model" not in kwargs:
            raise ValueError("model is required")
        super().__init__(config, **kwargs)

        self._base_kwargs: Dict[str, Any] = {}
        if self.config.base_url:
            self._base_kwargs["api_base"] = self.config.base_url
        if self.config.api_key:
            self._base_kwargs["api_key"] = self.config.api_key

        logger.info(f"LiteLLMClient initialized: model={self.config.model}")

    # ------------------------------------------------------------------
    # Core API method
    # ------------------------------------------------------------------

    async def _call_api(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        """Make a non-streaming call via litellm.acompletion."""
        import litellm

        model = kwargs.pop("model", None) or self.config.model
        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", self.config.temperature),
            "max_tokens": kwargs.pop("max_tokens", self.config.max_tokens),
            "timeout": kwargs.pop("timeout", self.config.timeout),
            "num_retries": self.config.max_retries,
            **self.config.extra,
            **self._base_kwargs,
        }

        if tools:
            params["tools"] = tools
            params["tool_choice"] = kwargs.pop("tool_choice", "auto")

        if "response_format" in kwargs:
            params["response_format"] = kwargs.pop("response_format")

        logger.info(
            f"[LiteLLM] model={model}, tools={len(tools) if tools else 0}, "
            f"messages={len(messages)}"
        )

        response = await litellm.acompletion(**params)

        choice = response.choices[0]
        message = choice.message

        tool_calls = None
        if message.tool_calls:
            tool_calls = []
            for tc in message.tool_calls:
                arguments = tc.function.arguments
                if isinstance(arguments, str):
                    try:
                        arguments = json.loads(arguments) if arguments else {}
                    except json.JSONDecodeError:
                        logger.warning(f"[LiteLLM] Invalid tool arguments for {tc.function.name}")
                        arguments = {}
                tool_calls.append(
                    ToolCall(id=tc.id, name=tc.function.name, arguments=arguments or {})
                )

        usage = None
        if getattr(response, "usage", None):
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            stop_reason=self._parse_stop_reason(choice.finish_reason),
            usage=usage,
            model=getattr(response, "model", model),
            raw_response=response,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_stop_reason(finish_reason: Optional[str]) -> StopReason:
        """Map litellm/OpenAI finish_reason to StopReason enum."""
        if finish_reason is None:
            return StopReason.END_TURN
        mapping = {
            "stop": StopReason.END_TURN,
            "end_turn": StopReason.END_TURN,
            "length": StopReason.MAX_TOKENS,
            "max_tokens": StopReason.MAX_TOKENS,
            "tool_calls": StopReason.TOOL_USE,
            "tool_use": StopReason.TOOL_USE,
            "function_call": StopReason.TOOL_USE,
            "content_filter": StopReason.CONTENT_FILTER,
            "stop_sequence": StopReason.STOP_SEQUENCE,
        }
        return mapping.get(finish_reason, StopReason.END_TURN)
