"""
Shared constants for the MediaValet orchestration core.

Centralizes tool names, provider lists and user-facing strings that are
needed by several orchestrator components, to avoid circular imports and
duplication.
"""

from typing import Dict, Tuple

# ── Tool names ──

TOOL_CREATE_IMAGE = "create_image"
TOOL_EDIT_IMAGE = "edit_image"
TOOL_CREATE_VIDEO = "create_video"
TOOL_EDIT_VIDEO = "edit_video"
TOOL_IMAGE_TO_VIDEO = "image_to_video"
TOOL_SEND_LOCATION = "send_location"
TOOL_TRANSCRIBE_AUDIO = "transcribe_audio"

# Tools whose text output legitimately is a set of URLs
URL_BEARING_TOOLS: Tuple[str, ...] = (
    "search_web",
    "get_chat_history",
    "chat_summary",
    "translate_text",
)

# ── Providers ──

IMAGE_PROVIDERS: Tuple[str, ...] = ("gemini", "openai", "grok")
VIDEO_PROVIDERS: Tuple[str, ...] = ("veo3", "sora", "kling")

DEFAULT_IMAGE_PROVIDER = "gemini"
DEFAULT_VIDEO_PROVIDER = "grok"

PROVIDER_DISPLAY_NAMES: Dict[str, str] = {
    "gemini": "Gemini",
    "openai": "OpenAI",
    "grok": "Grok",
    "veo3": "Veo 3",
    "veo-3": "Veo 3",
    "veo": "Veo 3",
    "sora": "Sora 2",
    "sora-2": "Sora 2",
    "sora2": "Sora 2",
    "sora-pro": "Sora 2 Pro",
    "sora-2-pro": "Sora 2 Pro",
    "kling": "Kling",
    "runway": "Runway",
    "suno": "Suno",
}

# Alias -> provider family
PROVIDER_ALIASES: Dict[str, str] = {
    "kling": "grok",
    "kling-text-to-video": "grok",
    "grok": "grok",
    "veo3": "gemini",
    "veo": "gemini",
    "gemini": "gemini",
    "google": "gemini",
    "google-veo3": "gemini",
    "sora": "openai",
    "sora-2": "openai",
    "sora2": "openai",
    "sora-2-pro": "openai",
    "sora-pro": "openai",
    "openai": "openai",
}

# Provider family -> video model display key
VIDEO_PROVIDER_DISPLAY_KEYS: Dict[str, str] = {
    "grok": "kling",
    "gemini": "veo3",
    "openai": "sora",
    "runway": "runway",
}

# ── Acknowledgments ──

PROVIDER_PLACEHOLDER = "__PROVIDER__"
DEFAULT_ACK_MESSAGE = "Working on it... ⚙️"

TOOL_ACK_MESSAGES: Dict[str, str] = {
    # Creation (provider placeholder)
    "create_image": "Creating an image with __PROVIDER__... 🎨",
    "create_video": "Creating a video with __PROVIDER__... 🎬",
    "image_to_video": "Animating the image with __PROVIDER__... 🎞️",
    "create_music": "Composing music... 🎵",
    "text_to_speech": "Converting to speech... 🎤",
    # Analysis
    "analyze_image": "Analyzing the image... 🔍",
    "analyze_image_from_history": "Analyzing the image... 🔍",
    "analyze_video": "Analyzing the video... 🎥",
    # Editing
    "edit_image": "Editing the image with __PROVIDER__... ✏️",
    "edit_video": "Editing the video with __PROVIDER__... 🎞️",
    # Information
    "search_web": "Searching the web... 🔍",
    "random_flight": "Looking for a flight... ✈️",
    "random_amazon_product": "Looking for a product... 🛒",
    "search_google_drive": "Searching Google Drive... 📁",
    "get_chat_history": "Fetching chat history... 📜",
    "get_long_term_memory": "Checking preferences... 💾",
    "translate_text": "Translating... 🌐",
    "translate_and_speak": "Translating and speaking... 🗣️",
    "schedule_message": "Scheduling the message... 📅",
    "transcribe_audio": "Transcribing the recording... 🎤📝",
    "chat_summary": "Summarizing the chat... 📝",
    # Messaging
    "create_poll": "Creating a poll... 📊",
    "create_group": "Creating a group... 👥",
    # Audio
    "voice_clone_and_speak": "Cloning the voice... 🎙️",
    "creative_audio_mix": "Mixing audio... 🎧",
    "create_sound_effect": "Generating a sound effect... 🔊",
    "retry_last_command": "Repeating the last action... ↩️",
    "save_user_preference": "Saving your preference... 💾",
}

# ── User-facing messages ──

DUPLICATE_CALL_ERROR = (
    "Duplicate tool call blocked. You already executed this tool with these "
    "exact arguments. Do not repeat yourself."
)
CREATION_ALREADY_SUCCEEDED_ERROR = (
    "Duplicate tool call blocked. {tool} already succeeded in this request. "
    "Do not call it again."
)
MAX_ITERATIONS_ERROR = (
    "I reached the maximum number of attempts. Please try rephrasing your request."
)
EMPTY_RESPONSE_FALLBACK = "I couldn't put together a clear answer. Please try again."
TASK_COMPLETED_TEXT = "I completed the task."
RUN_TIMEOUT_ERROR = (
    "⏱️ This took too long. Try a simpler request or try again later."
)
STEP_TOOL_RESTRICTED_ERROR = (
    "This tool is not part of the current step. Please execute only: {tool}"
)
UNKNOWN_REASON = "Unknown error"
NO_PROVIDER_ERRORS = "No error details were returned by the providers."
