"""
Tool acknowledgment messages

Before running tools the user gets one short "working on it" message per batch.
Creation and edit tools name the provider that is being used.

Usage:
    await send_tool_ack_message(notifier, chat_id, [FunctionCall("create_image", {"prompt": "cat"})])
    # -> "Creating an image with Gemini... 🎨"
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..constants import (
    DEFAULT_ACK_MESSAGE,
    DEFAULT_IMAGE_PROVIDER,
    DEFAULT_VIDEO_PROVIDER,
    PROVIDER_PLACEHOLDER,
    TOOL_ACK_MESSAGES,
    TOOL_SEND_LOCATION,
)
from ..providers.names import (
    format_provider_name,
    normalize_provider_key,
    video_provider_display_name,
)
from .notifier import Notifier

logger = logging.getLogger(__name__)

_IMAGE_TOOLS = ("create_image", "edit_image")
_VIDEO_TOOLS = ("create_video", "edit_video", "image_to_video")


def apply_provider_to_message(message: str, provider_name: Optional[str]) -> str:
    """Fill the provider placeholder, or drop the "with <provider>" fragment."""
    if PROVIDER_PLACEHOLDER not in message:
        return message
    if provider_name:
        return message.replace(PROVIDER_PLACEHOLDER, provider_name)
    return message.replace(f" with {PROVIDER_PLACEHOLDER}", "").replace(PROVIDER_PLACEHOLDER, "")


def get_tool_ack_message(tool_name: str, provider: Optional[str] = None) -> str:
    """Ack text for one tool, with the provider display name filled in."""
    message = TOOL_ACK_MESSAGES.get(tool_name, DEFAULT_ACK_MESSAGE)

    if not provider:
        if tool_name in _IMAGE_TOOLS:
            provider = DEFAULT_IMAGE_PROVIDER
        elif tool_name in _VIDEO_TOOLS:
            provider = DEFAULT_VIDEO_PROVIDER

    if tool_name in _VIDEO_TOOLS:
        provider_name = video_provider_display_name(provider)
    else:
        provider_name = format_provider_name(provider)
    return apply_provider_to_message(message, provider_name)


def _call_parts(call: Any) -> tuple:
    if isinstance(call, dict):
        return call.get("name", ""), call.get("args") or {}
    return getattr(call, "name", ""), getattr(call, "args", None) or {}


def _single_ack(call: Any) -> str:
    name, args = _call_parts(call)
    if name == TOOL_SEND_LOCATION:
        return ""
    provider_raw = args.get("provider") or args.get("service")
    provider = normalize_provider_key(provider_raw) if name in _IMAGE_TOOLS else provider_raw
    return get_tool_ack_message(name, provider)


def build_ack_message(function_calls: Iterable[Any]) -> str:
    """Combined ack for a batch: one, two joined, or a count for three or more."""
    acks = [ack for ack in (_single_ack(call) for call in function_calls) if ack.strip()]
    if not acks:
        return ""
    if len(acks) == 1:
        return acks[0]
    if len(acks) == 2:
        return f"{acks[0]} {acks[1]}".strip()
    return f"{len(acks)} actions in progress... ⚙️"


async def send_tool_ack_message(
    notifier: Optional[Notifier],
    chat_id: Optional[str],
    function_calls: Sequence[Any],
    quoted_message_id: Optional[str] = None,
    skip_tools: Sequence[str] = (),
) -> bool:
    """Send the batch ack. Best effort; returns whether anything was sent."""
    if notifier is None or not chat_id or not function_calls:
        return False

    calls: List[Any] = [c for c in function_calls if _call_parts(c)[0] not in skip_tools]
    if not calls:
        logger.debug("[Ack] All tools skipped, no ack needed")
        return False

    message = build_ack_message(calls)
    if not message:
        return False

    logger.debug(f"[Ack] Sending acknowledgment: {message}")
    return await notifier.send_text(chat_id, message, quoted_message_id)


def provider_ack_call(tool_name: str, provider: str) -> Dict[str, Any]:
    """Synthetic call used to announce a provider switch."""
    return {"name": tool_name, "args": {"provider": provider, "service": provider}}
