"""
Pipeline detection

A pipeline is a run where data tools (or earlier output tools) feed a final
output tool, e.g. get_chat_history -> create_image. The text the model writes
in such a run usually restates the intermediate data and is withheld from the
user; the final asset is the answer.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_SEPARATE_COMMAND_RES = [
    re.compile(r"(?:and then|after that|and also)\s+(?:create|send|make)", re.IGNORECASE),
    re.compile(r"(?:create|send|make).*?(?:and then|after that).*?(?:create|send|make)", re.IGNORECASE),
    re.compile(r"image.*?and then.*?(?:poll|location)", re.IGNORECASE),
    re.compile(r"poll.*?and then.*?(?:image|location)", re.IGNORECASE),
]

DATA_TOOL_PATTERNS: Dict[str, List[re.Pattern]] = {
    "get_chat_history": [
        re.compile(r"(?:conversation|history|messages|message)", re.IGNORECASE),
        re.compile(r"\[message", re.IGNORECASE),
    ],
    "chat_summary": [
        re.compile(r"summary", re.IGNORECASE),
        re.compile(r"(?:topics|key points)", re.IGNORECASE),
    ],
    "search_web": [
        re.compile(r"(?:results|links|found)", re.IGNORECASE),
        re.compile(r"https?://", re.IGNORECASE),
    ],
    "search_google_drive": [
        re.compile(r"(?:found|located)", re.IGNORECASE),
        re.compile(r"in drive", re.IGNORECASE),
    ],
    "translate_text": [
        re.compile(r"(?:translation|translated)", re.IGNORECASE),
    ],
    "get_long_term_memory": [
        re.compile(r"(?:preferences|summaries)", re.IGNORECASE),
    ],
}

_GENERIC_DATA_RES = [
    re.compile(r"(?:\[|\]|messages|results|links)", re.IGNORECASE),
    re.compile(r"(?:https?://|www\.)", re.IGNORECASE),
    re.compile(r"(?:found|located|results)", re.IGNORECASE),
]
_GENERIC_MIN_LENGTH = 100

_INTERMEDIATE_OUTPUT_RES = [
    re.compile(r"(?:image created|image of)", re.IGNORECASE),
    re.compile(r"✅.*image", re.IGNORECASE),
]


def is_two_separate_commands(user_text: Optional[str]) -> bool:
    """True when the user explicitly asked for two independent actions."""
    if not user_text:
        return False
    return any(pattern.search(user_text) for pattern in _SEPARATE_COMMAND_RES)


def get_last_output_tool(tools_used: Sequence[str], registry: ToolRegistry) -> Optional[str]:
    for tool in reversed(tools_used):
        if tool and registry.is_output_tool(tool):
            return tool
    return None


def looks_like_data_tool_output(text: str, data_tools_used: Sequence[str]) -> bool:
    if not data_tools_used or not text or not text.strip():
        return False

    for tool in data_tools_used:
        for pattern in DATA_TOOL_PATTERNS.get(tool, []):
            if pattern.search(text):
                return True

    if len(text) > _GENERIC_MIN_LENGTH:
        return any(pattern.search(text) for pattern in _GENERIC_DATA_RES)
    return False


def _value(result: Any, key: str) -> Any:
    if isinstance(result, dict):
        return result.get(key)
    return getattr(result, key, None)


def is_intermediate_tool_output_in_pipeline(
    result: Any,
    user_text: Optional[str],
    registry: Optional[ToolRegistry] = None,
) -> bool:
    """
    Decide whether a run's text is intermediate pipeline output.

    Args:
        result: Run or step result exposing text, tools_used and the asset
            fields (image_url, video_url, audio_url, poll, latitude, longitude)
        user_text: The user's original request
        registry: Source of the DATA/OUTPUT capability tags
    """
    registry = registry or ToolRegistry()
    tools_used: List[str] = list(_value(result, "tools_used") or [])
    if not tools_used:
        return False

    if is_two_separate_commands(user_text):
        logger.debug("[Pipeline] User requested two separate commands, not suppressing")
        return False

    has_final_output = bool(
        _value(result, "image_url")
        or _value(result, "video_url")
        or _value(result, "audio_url")
        or _value(result, "poll")
        or (_value(result, "latitude") is not None and _value(result, "longitude") is not None)
    )
    if not has_final_output:
        return False

    last_output_tool = get_last_output_tool(tools_used, registry)
    if not last_output_tool:
        return False

    data_tools_used: List[str] = []
    intermediate_output_tools: List[str] = []
    for tool in tools_used:
        if tool == last_output_tool:
            continue
        if registry.is_data_tool(tool):
            data_tools_used.append(tool)
        elif registry.is_output_tool(tool):
            intermediate_output_tools.append(tool)

    if not data_tools_used and not intermediate_output_tools:
        return False

    text = _value(result, "text") or ""
    if not text.strip():
        return False

    if data_tools_used and looks_like_data_tool_output(text, data_tools_used):
        logger.debug(
            f"[Pipeline] Suppressing data tool output: "
            f"{', '.join(data_tools_used)} -> {last_output_tool}"
        )
        return True

    if intermediate_output_tools:
        for pattern in _INTERMEDIATE_OUTPUT_RES:
            if pattern.search(text):
                logger.debug(
                    f"[Pipeline] Suppressing intermediate output: "
                    f"{', '.join(intermediate_output_tools)} -> {last_output_tool}"
                )
                return True

    return False
