"""
MediaValet Text - Presentation cleaners and pipeline detection
"""

from .cleaning import (
    clean_json_wrapper,
    clean_markdown,
    clean_media_description,
    clean_thinking_patterns,
    strip_urls,
)
from .pipeline import (
    get_last_output_tool,
    is_intermediate_tool_output_in_pipeline,
    is_two_separate_commands,
    looks_like_data_tool_output,
)

__all__ = [
    "clean_json_wrapper",
    "clean_markdown",
    "clean_media_description",
    "clean_thinking_patterns",
    "strip_urls",
    "get_last_output_tool",
    "is_intermediate_tool_output_in_pipeline",
    "is_two_separate_commands",
    "looks_like_data_tool_output",
]
