"""
MediaValet Tools - Tool-call models and the tool registry
"""

from .models import (
    FunctionCall,
    FunctionResponse,
    ResultKind,
    ToolResult,
    poll_options,
)
from .registry import (
    BUILTIN_DESCRIPTORS,
    MediaKind,
    ToolCapability,
    ToolDescriptor,
    ToolRegistry,
)

__all__ = [
    "FunctionCall",
    "FunctionResponse",
    "ResultKind",
    "ToolResult",
    "poll_options",
    "BUILTIN_DESCRIPTORS",
    "MediaKind",
    "ToolCapability",
    "ToolDescriptor",
    "ToolRegistry",
]
