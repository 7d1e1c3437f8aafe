"""
MediaValet LLM - Chat-completion client and function-calling session

Usage:
    from mediavalet.llm import ChatSession, LiteLLMClient, LLMConfig

    client = LiteLLMClient(LLMConfig(model="gemini/gemini-2.5-flash"))
    session = ChatSession(client, tools=tool_schemas)
    response = await session.send_message("Draw a cat")
"""

from .base import BaseLLMClient, LLMConfig, LLMResponse, StopReason, ToolCall, Usage
from .litellm_client import LiteLLMClient
from .session import ChatSession, SessionResponse

__all__ = [
    "BaseLLMClient",
    "LLMConfig",
    "LLMResponse",
    "StopReason",
    "ToolCall",
    "Usage",
    "LiteLLMClient",
    "ChatSession",
    "SessionResponse",
]
