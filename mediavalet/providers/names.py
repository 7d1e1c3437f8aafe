"""
Provider naming helpers - display names, alias normalization, error text
"""

from typing import Optional

from ..constants import (
    PROVIDER_ALIASES,
    PROVIDER_DISPLAY_NAMES,
    VIDEO_PROVIDER_DISPLAY_KEYS,
)


def format_provider_name(provider: Optional[str]) -> str:
    """Human readable provider name; unknown names pass through unchanged."""
    if not provider:
        return ""
    return PROVIDER_DISPLAY_NAMES.get(provider.lower(), provider)


def normalize_provider_key(provider: Optional[str]) -> Optional[str]:
    """Map a provider alias (kling, veo3, sora-2, ...) onto its provider family."""
    if not provider:
        return None
    key = provider.strip().lower()
    return PROVIDER_ALIASES.get(key, key)


def video_provider_display_name(provider: Optional[str]) -> str:
    """Display name of the video model behind a provider or alias."""
    if not provider:
        return ""
    key = provider.strip().lower()
    if key in PROVIDER_DISPLAY_NAMES and key not in VIDEO_PROVIDER_DISPLAY_KEYS:
        return PROVIDER_DISPLAY_NAMES[key]
    family = normalize_provider_key(key)
    model_key = VIDEO_PROVIDER_DISPLAY_KEYS.get(family or "", key)
    return format_provider_name(model_key)


def format_provider_error(provider: Optional[str], message: Optional[str]) -> str:
    """User-facing error for one provider: "❌ <Provider>: <message>"."""
    text = (message or "").strip()
    if text.startswith("❌"):
        text = text[1:].strip()
    name = format_provider_name(provider)
    if not name:
        return f"❌ {text}"
    return f"❌ {name}: {text}"
