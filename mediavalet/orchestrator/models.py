"""
MediaValet Orchestrator Models

Execution records shared by the agent loop, multi-step execution and result
delivery: generated assets, the tool-call log, plans and run results.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Generated assets
# ---------------------------------------------------------------------------

@dataclass
class ImageAsset:
    url: str
    caption: str = ""
    prompt: Optional[str] = None
    provider: Optional[str] = None
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "caption": self.caption,
            "prompt": self.prompt,
            "provider": self.provider,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageAsset":
        return cls(
            url=data.get("url", ""),
            caption=data.get("caption") or "",
            prompt=data.get("prompt"),
            provider=data.get("provider"),
            timestamp=data.get("timestamp") or now_ms(),
        )


@dataclass
class VideoAsset(ImageAsset):
    pass


@dataclass
class AudioAsset:
    url: str
    prompt: Optional[str] = None
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "prompt": self.prompt, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AudioAsset":
        return cls(
            url=data.get("url", ""),
            prompt=data.get("prompt"),
            timestamp=data.get("timestamp") or now_ms(),
        )


@dataclass
class PollAsset:
    question: str
    options: List[str] = field(default_factory=list)
    topic: Optional[str] = None
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "topic": self.topic,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PollAsset":
        return cls(
            question=data.get("question", ""),
            options=list(data.get("options") or []),
            topic=data.get("topic"),
            timestamp=data.get("timestamp") or now_ms(),
        )


@dataclass
class GeneratedAssets:
    """Append-only asset lists of a run; the latest asset is the last element."""

    images: List[ImageAsset] = field(default_factory=list)
    videos: List[VideoAsset] = field(default_factory=list)
    audio: List[AudioAsset] = field(default_factory=list)
    polls: List[PollAsset] = field(default_factory=list)

    @staticmethod
    def _latest(items: List[Any], since: Optional[int]) -> Any:
        if not items:
            return None
        latest = items[-1]
        if since is not None and latest.timestamp < since:
            return None
        return latest

    def latest_image(self, since: Optional[int] = None) -> Optional[ImageAsset]:
        return self._latest(self.images, since)

    def latest_video(self, since: Optional[int] = None) -> Optional[VideoAsset]:
        return self._latest(self.videos, since)

    def latest_audio(self, since: Optional[int] = None) -> Optional[AudioAsset]:
        return self._latest(self.audio, since)

    def latest_poll(self, since: Optional[int] = None) -> Optional[PollAsset]:
        return self._latest(self.polls, since)

    def extend(self, other: "GeneratedAssets") -> None:
        self.images.extend(other.images)
        self.videos.extend(other.videos)
        self.audio.extend(other.audio)
        self.polls.extend(other.polls)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "images": [a.to_dict() for a in self.images],
            "videos": [a.to_dict() for a in self.videos],
            "audio": [a.to_dict() for a in self.audio],
            "polls": [a.to_dict() for a in self.polls],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GeneratedAssets":
        data = data or {}
        return cls(
            images=[ImageAsset.from_dict(d) for d in data.get("images") or []],
            videos=[VideoAsset.from_dict(d) for d in data.get("videos") or []],
            audio=[AudioAsset.from_dict(d) for d in data.get("audio") or []],
            polls=[PollAsset.from_dict(d) for d in data.get("polls") or []],
        )


# ---------------------------------------------------------------------------
# Tool-call log
# ---------------------------------------------------------------------------

@dataclass
class ToolCallLogEntry:
    """One executed tool call, in execution order."""

    tool: str
    args: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    timestamp: int = field(default_factory=now_ms)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "tool": self.tool,
            "args": self.args,
            "success": self.success,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCallLogEntry":
        return cls(
            tool=data.get("tool", ""),
            args=dict(data.get("args") or {}),
            success=data.get("success", True) is not False,
            timestamp=data.get("timestamp") or now_ms(),
            error=data.get("error"),
        )


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanStep:
    step_number: int
    action: str
    tool: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "action": self.action,
            "tool": self.tool,
            "parameters": dict(self.parameters),
        }


@dataclass
class Plan:
    is_multi_step: bool
    steps: List[PlanStep] = field(default_factory=list)
    reasoning: str = ""
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_multi_step": self.is_multi_step,
            "steps": [s.to_dict() for s in self.steps],
            "reasoning": self.reasoning,
            "fallback": self.fallback,
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Outcome of a run or of a single plan step."""

    success: bool
    text: str = ""
    error: Optional[str] = None

    image_url: Optional[str] = None
    image_caption: str = ""
    video_url: Optional[str] = None
    video_caption: str = ""
    audio_url: Optional[str] = None
    poll: Optional[Dict[str, Any]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_info: Optional[str] = None

    tools_used: List[str] = field(default_factory=list)
    iterations: int = 0
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    tool_results: Dict[str, Any] = field(default_factory=dict)

    multi_step: bool = False
    already_sent: bool = False
    timeout: bool = False
    suppressed_final_response: bool = False
    original_message_id: Optional[str] = None

    # Multi-step only
    plan: Optional[Plan] = None
    steps_completed: Optional[int] = None
    total_steps: Optional[int] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def has_structured_output(self) -> bool:
        return bool(
            self.image_url or self.video_url or self.audio_url or self.poll or self.has_location
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "text": self.text,
            "image_url": self.image_url,
            "image_caption": self.image_caption,
            "video_url": self.video_url,
            "video_caption": self.video_caption,
            "audio_url": self.audio_url,
            "poll": self.poll,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "location_info": self.location_info,
            "tools_used": list(self.tools_used),
            "iterations": self.iterations,
            "tool_calls": list(self.tool_calls),
            "tool_results": dict(self.tool_results),
            "multi_step": self.multi_step,
            "already_sent": self.already_sent,
            "suppressed_final_response": self.suppressed_final_response,
            "original_message_id": self.original_message_id,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.timeout:
            data["timeout"] = True
        if self.multi_step:
            data["plan"] = self.plan.to_dict() if self.plan else None
            data["steps_completed"] = self.steps_completed
            data["total_steps"] = self.total_steps
        return data
