"""
MediaValet Tool Models - Data structures for LLM tool calling

ToolResult is the typed boundary for whatever a tool returns. Tools may still
return plain dicts with the camelCase wire keys (imageUrl, suppressFinalResponse,
...); ``ToolResult.from_raw`` normalizes both shapes and ``to_dict`` restores the
wire shape, where the presence of a media field signals what was produced.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResultKind(str, Enum):
    """Family of a tool result, derived from the fields it carries"""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    POLL = "poll"
    LOCATION = "location"
    TEXT = "text"
    ERROR = "error"


@dataclass
class FunctionCall:
    """
    A tool-call request emitted by the LLM

    Attributes:
        name: Tool name
        args: Arguments dict, validated only by the tool itself
        id: Provider call ID (used to pair the response), if any
    """
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class FunctionResponse:
    """The response sent back to the LLM for one FunctionCall"""
    name: str
    response: Dict[str, Any]
    id: Optional[str] = None

    @property
    def blocked(self) -> bool:
        return bool(self.response.get("blocked"))


class ToolResult(BaseModel):
    """
    Result of a tool execution.

    Unknown keys are kept (``extra="allow"``) so tool-specific payloads pass
    through to the LLM untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    success: Optional[bool] = None
    error: Optional[str] = None
    data: Optional[Any] = None

    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    image_caption: Optional[str] = Field(default=None, alias="imageCaption")
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
    video_caption: Optional[str] = Field(default=None, alias="videoCaption")
    audio_url: Optional[str] = Field(default=None, alias="audioUrl")
    caption: Optional[str] = None
    description: Optional[str] = None
    revised_prompt: Optional[str] = Field(default=None, alias="revisedPrompt")

    poll: Optional[Dict[str, Any]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_info: Optional[str] = Field(default=None, alias="locationInfo")

    provider: Optional[str] = None
    suppress_final_response: Optional[bool] = Field(default=None, alias="suppressFinalResponse")
    errors_already_sent: Optional[bool] = Field(default=None, alias="errorsAlreadySent")
    text_only: Optional[bool] = Field(default=None, alias="textOnly")
    blocked: Optional[bool] = None

    @classmethod
    def from_raw(cls, value: Any) -> "ToolResult":
        """Normalize a tool's return value (ToolResult, dict or anything else)"""
        if isinstance(value, ToolResult):
            return value
        if value is None:
            return cls(success=False, error="Tool returned no result")
        if isinstance(value, dict):
            return cls.model_validate(value)
        return cls(success=True, data=value)

    @classmethod
    def failure(cls, error: str, **extra: Any) -> "ToolResult":
        return cls(success=False, error=error, **extra)

    @property
    def failed(self) -> bool:
        """True when the result carries an error or explicit success=False"""
        return self.success is False or bool(self.error)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def kind(self) -> ResultKind:
        if self.error:
            return ResultKind.ERROR
        if self.image_url:
            return ResultKind.IMAGE
        if self.video_url:
            return ResultKind.VIDEO
        if self.audio_url:
            return ResultKind.AUDIO
        if self.poll:
            return ResultKind.POLL
        if self.has_location:
            return ResultKind.LOCATION
        return ResultKind.TEXT

    def data_text(self) -> str:
        """Text payload of ``data`` when it is a plain string"""
        return self.data if isinstance(self.data, str) else ""

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: camelCase keys, unset fields omitted"""
        return self.model_dump(by_alias=True, exclude_none=True)


def poll_options(poll: Optional[Dict[str, Any]]) -> List[str]:
    """Option labels of a poll payload (strings or {"optionName": ...} dicts)"""
    if not poll:
        return []
    options = []
    for option in poll.get("options") or []:
        if isinstance(option, dict):
            option = option.get("optionName") or option.get("name") or ""
        if option:
            options.append(str(option))
    return options
