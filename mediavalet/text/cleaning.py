"""
Presentation-layer text cleaners

The model's free text and tool captions pass through these before they reach
the user: step markers, JSON wrappers, URLs and media placeholder tags are
removed.
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_STEP_COMPLETED_RE = re.compile(r"✅\s*Step\s+\d+/\d+\s+completed[.!]?\s*", re.IGNORECASE)
_STEP_PROCEEDING_RE = re.compile(r"Now proceeding to Step \d+/\d+\.{3,}", re.IGNORECASE)

_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`]*`")
_FENCE_RE = re.compile(r"^\s*`+\s*|\s*`+\s*$", re.MULTILINE)
_MULTI_WHITESPACE_RE = re.compile(r"\s{2,}")
_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")

URL_RE = re.compile(r"https?://[^\s]+", re.IGNORECASE)
_MD_LINK_RE = re.compile(r"\[.*?\]\(https?://[^)]+\)")
_PLACEHOLDER_RES = [
    re.compile(r"\[(image|video|audio|Media)\]", re.IGNORECASE),
    re.compile(
        r"\[(image|video|audio|imageUrl|videoUrl|audioUrl|image_url|video_url|audio_url"
        r"|image_id|video_id|audio_id)(:|=)\s*[^\]]*\]?",
        re.IGNORECASE,
    ),
    re.compile(r"\{(imageUrl|videoUrl|audioUrl|taskId)(:|=)\s*[^}]*\}?", re.IGNORECASE),
    re.compile(r"\[(Image|Video|Audio|Voice message)\s+(sent|created)\]", re.IGNORECASE),
    re.compile(r"\[(Video|Audio|Image|Music|File|Link)[^\]]*\]", re.IGNORECASE),
    re.compile(
        r"(audioUrl|imageUrl|videoUrl|image_url|video_url|audio_url):\s*https?://[^\s\]]+",
        re.IGNORECASE,
    ),
    re.compile(r"taskId:\s*[\"']?[a-f0-9-]+[\"']?", re.IGNORECASE),
    re.compile(r"\{(imageUrl|videoUrl|audioUrl|taskId):\s*[\"']?$", re.IGNORECASE),
]
_TRAILING_PUNCT_RE = re.compile(r"[.)},;:-]+$")
_LEADING_PUNCT_RE = re.compile(r"^[,.)},;:-]+")
_NO_WORD_CHARS_RE = re.compile(r"^\W+$")

_JSON_WHOLE_RE = re.compile(r"^\s*(\{[\s\S]*\}|\[[\s\S]*\])\s*$")
_JSON_FENCED_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\}|\[[\s\S]*?\])\s*```")
_JSON_FENCED_BLOCK_RES = [
    re.compile(r"```(?:json)?\s*\{[\s\S]*?\}\s*```"),
    re.compile(r"```(?:json)?\s*\[[\s\S]*?\]\s*```"),
    re.compile(r"```json\s*"),
    re.compile(r"```\s*"),
]
_JSON_EMBEDDED_RE = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")

JSON_CONTENT_FIELDS = (
    "answer", "text", "message", "content", "description", "data",
    "formatted_address", "address",
)


def clean_thinking_patterns(text: Optional[str]) -> str:
    """Remove "✅ Step N/M completed" and "Now proceeding to Step N/M..." markers."""
    if not text:
        return ""
    cleaned = _STEP_COMPLETED_RE.sub("", text)
    cleaned = _STEP_PROCEEDING_RE.sub("", cleaned)
    return cleaned.strip()


def strip_urls(text: Optional[str]) -> str:
    if not text:
        return ""
    return _MULTI_SPACE_RE.sub(" ", URL_RE.sub("", text)).strip()


def clean_markdown(text: Optional[str]) -> str:
    if not text or not isinstance(text, str):
        return ""
    cleaned = _CODE_BLOCK_RE.sub("", text)
    cleaned = _INLINE_CODE_RE.sub("", cleaned)
    cleaned = _FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def clean_media_description(text: Any, preserve_links: bool = False) -> str:
    """Caption text without markdown, URLs or placeholder tags; "" if nothing meaningful remains."""
    if not text or not isinstance(text, str):
        return ""

    cleaned = clean_markdown(text)
    if not preserve_links:
        cleaned = _MD_LINK_RE.sub("", cleaned)
        cleaned = URL_RE.sub("", cleaned)

    for pattern in _PLACEHOLDER_RES:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.replace("✅", "").replace("[", "").replace("]", "")
    cleaned = _TRAILING_PUNCT_RE.sub("", cleaned)
    cleaned = _LEADING_PUNCT_RE.sub("", cleaned)
    cleaned = _MULTI_WHITESPACE_RE.sub(" ", cleaned).strip()

    if len(cleaned) < 3 or _NO_WORD_CHARS_RE.match(cleaned):
        return ""
    return cleaned


def _first_content_field(obj: Any) -> Optional[str]:
    if not isinstance(obj, dict):
        return None
    for field_name in JSON_CONTENT_FIELDS:
        value = obj.get(field_name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _extract_json_content(parsed: Any) -> Optional[str]:
    if isinstance(parsed, list):
        return _first_content_field(parsed[0]) if parsed else None
    if not isinstance(parsed, dict):
        return None

    content = _first_content_field(parsed)
    if content:
        return content

    results = parsed.get("results")
    if isinstance(results, list) and results:
        content = _first_content_field(results[0])
        if content:
            return content

    if len(parsed) == 1:
        value = next(iter(parsed.values()))
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _try_json(candidate: str) -> Optional[str]:
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return _extract_json_content(parsed)


def clean_json_wrapper(text: Any) -> str:
    """Unwrap model output that arrived as JSON (raw or fenced) into its text content."""
    if not text or not isinstance(text, str):
        return ""

    cleaned = text.strip()

    match = _JSON_WHOLE_RE.match(cleaned)
    if match:
        content = _try_json(match.group(1))
        if content:
            return content

    match = _JSON_FENCED_RE.search(cleaned)
    if match:
        content = _try_json(match.group(1))
        if content:
            return content

    for pattern in _JSON_FENCED_BLOCK_RES:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.strip()

    match = _JSON_EMBEDDED_RE.search(cleaned)
    if match:
        content = _try_json(match.group(1))
        if content:
            return content

    if cleaned.startswith(("{", "[")):
        logger.debug("[TextCleaning] Text looks like JSON but has no extractable content")

    return cleaned
