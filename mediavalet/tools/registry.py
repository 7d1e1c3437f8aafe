"""
MediaValet Tool Registry - Static tool descriptors and tool lookup

Every tool carries a ToolDescriptor computed once at registration. Consumers
ask the registry (is_creation, is_stochastic, ...) instead of keeping their own
lists of tool names.

Usage:
    registry = ToolRegistry()
    registry.register(CreateImageTool())
    tool = registry.get("create_image")
    registry.is_creation("create_image")  # True
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)


class ToolCapability(str, Enum):
    """Static capability tags of a tool"""
    CREATION = "creation"   # Single-use media creation/edit, at most one success per run
    DATA = "data"           # Returns intermediate data consumed by later tools
    OUTPUT = "output"       # Produces a final user-facing output


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class ToolDescriptor:
    """
    Static metadata of a tool.

    Attributes:
        name: Tool name
        capabilities: Capability tags
        stochastic: Identical arguments may legitimately give different results,
            so identical repeated calls are allowed
        internal_fallback: The tool already walks every provider itself
        step_fallback: Eligible for the multi-step provider fallback
        media_kind: Kind of media the tool produces, if any
    """
    name: str
    capabilities: FrozenSet[ToolCapability] = field(default_factory=frozenset)
    stochastic: bool = False
    internal_fallback: bool = False
    step_fallback: bool = False
    media_kind: Optional[MediaKind] = None

    def has(self, capability: ToolCapability) -> bool:
        return capability in self.capabilities


def _descriptor(name: str, *capabilities: ToolCapability, **kwargs: Any) -> ToolDescriptor:
    return ToolDescriptor(name=name, capabilities=frozenset(capabilities), **kwargs)


_C = ToolCapability.CREATION
_D = ToolCapability.DATA
_O = ToolCapability.OUTPUT

# Descriptors of the known tool catalogue
BUILTIN_DESCRIPTORS: Dict[str, ToolDescriptor] = {d.name: d for d in [
    # Creation
    _descriptor("create_image", _C, _O, stochastic=True, internal_fallback=True,
                step_fallback=True, media_kind=MediaKind.IMAGE),
    _descriptor("edit_image", _C, stochastic=True, internal_fallback=True,
                step_fallback=True, media_kind=MediaKind.IMAGE),
    _descriptor("create_video", _C, _O, stochastic=True, internal_fallback=True,
                step_fallback=True, media_kind=MediaKind.VIDEO),
    _descriptor("edit_video", _C, internal_fallback=True, step_fallback=True,
                media_kind=MediaKind.VIDEO),
    _descriptor("image_to_video", _C, _O, stochastic=True, internal_fallback=True,
                media_kind=MediaKind.VIDEO),
    _descriptor("generate_image", stochastic=True, media_kind=MediaKind.IMAGE),
    _descriptor("generate_video", stochastic=True, media_kind=MediaKind.VIDEO),
    _descriptor("animate_image", _O, media_kind=MediaKind.VIDEO),
    # Audio
    _descriptor("create_music", _O, stochastic=True, media_kind=MediaKind.AUDIO),
    _descriptor("text_to_speech", _O, media_kind=MediaKind.AUDIO),
    _descriptor("translate_and_speak", _O, media_kind=MediaKind.AUDIO),
    _descriptor("voice_clone_and_speak", _O, media_kind=MediaKind.AUDIO),
    _descriptor("creative_audio_mix", _O, stochastic=True, media_kind=MediaKind.AUDIO),
    _descriptor("create_sound_effect", media_kind=MediaKind.AUDIO),
    # Messaging / structured output
    _descriptor("create_poll", _O, stochastic=True),
    _descriptor("send_location", _O),
    # Data
    _descriptor("get_chat_history", _D),
    _descriptor("chat_summary", _D),
    _descriptor("search_web", _D),
    _descriptor("search_google_drive", _D),
    _descriptor("translate_text", _D),
    _descriptor("get_long_term_memory", _D),
    _descriptor("analyze_image_from_history", _D),
    _descriptor("transcribe_audio", _D),
    # Randomized / retry
    _descriptor("random_amazon_product", stochastic=True),
    _descriptor("random_flight", stochastic=True),
    _descriptor("retry_last_command", stochastic=True),
]}


class ToolRegistry:
    """
    Registry of executable tools and their descriptors.

    A tool registered without an explicit descriptor gets the built-in one
    for its name, or a plain descriptor with no capabilities.
    """

    def __init__(self, tools: Optional[Iterable[Any]] = None):
        self._tools: Dict[str, Any] = {}
        self._descriptors: Dict[str, ToolDescriptor] = dict(BUILTIN_DESCRIPTORS)
        for tool in tools or []:
            self.register(tool)

    def register(
        self,
        tool: Any,
        descriptor: Optional[ToolDescriptor] = None,
        name: Optional[str] = None,
    ) -> None:
        """Register a tool object exposing ``async execute(args, context)``"""
        tool_name = name or getattr(tool, "name", None)
        if not tool_name:
            raise ValueError("Tool must have a name")
        if descriptor is not None:
            if descriptor.name != tool_name:
                descriptor = replace(descriptor, name=tool_name)
            self._descriptors[tool_name] = descriptor
        self._tools[tool_name] = tool
        logger.debug(f"Registered tool: {tool_name}")

    def get(self, name: str) -> Optional[Any]:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def descriptor(self, name: str) -> ToolDescriptor:
        return self._descriptors.get(name) or ToolDescriptor(name=name)

    # ------------------------------------------------------------------
    # Capability queries
    # ------------------------------------------------------------------

    def is_creation(self, name: str) -> bool:
        return self.descriptor(name).has(ToolCapability.CREATION)

    def is_data_tool(self, name: str) -> bool:
        return self.descriptor(name).has(ToolCapability.DATA)

    def is_output_tool(self, name: str) -> bool:
        return self.descriptor(name).has(ToolCapability.OUTPUT)

    def is_stochastic(self, name: str) -> bool:
        return self.descriptor(name).stochastic

    def has_internal_fallback(self, name: str) -> bool:
        return self.descriptor(name).internal_fallback

    def supports_step_fallback(self, name: str) -> bool:
        return self.descriptor(name).step_fallback

    def media_kind(self, name: str) -> Optional[MediaKind]:
        return self.descriptor(name).media_kind
