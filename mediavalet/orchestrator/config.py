"""Agent run configuration.

Centralizes the tunable parameters of the agent loop, multi-step execution,
step fallback and circuit breakers.
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional


class FallbackPolicy(str, Enum):
    """How a failed creation step may be retried on other providers."""

    AUTO = "auto"
    """Retry on the remaining providers of the same media kind."""
    STRICT = "strict"
    """Never switch provider automatically; the tool's own error stands."""


@dataclass
class BreakerConfig:
    """Circuit breaker defaults for provider calls."""

    failure_threshold: int = 5
    """Failures in CLOSED before the breaker opens."""
    timeout: float = 30.0
    """Per-call deadline in seconds."""
    reset_timeout: float = 60.0
    """Cool-down in seconds before an open breaker probes again."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "failure_threshold": self.failure_threshold,
            "timeout": self.timeout,
            "reset_timeout": self.reset_timeout,
        }


@dataclass
class AgentConfig:
    """All agent run configuration centralized in one place."""

    model: str = "gemini/gemini-2.5-flash"
    """litellm model string used by the chat session and the planner."""

    # Loop control
    max_iterations: int = 8
    """Maximum model turns of a single conversational run."""
    timeout_seconds: float = 240
    """Overall deadline of a single conversational run."""

    # Multi-step
    step_max_iterations: int = 5
    """Maximum model turns inside one isolated plan step."""
    multi_step_min_iterations: int = 15
    """Floor applied to max_iterations for plan-driven runs."""
    multi_step_min_timeout_seconds: float = 600
    """Floor applied to timeout_seconds for plan-driven runs."""
    fallback_policy: FallbackPolicy = FallbackPolicy.AUTO
    """Provider switching policy for failed creation steps."""

    # Context
    context_memory_enabled: bool = False
    """Load and save tool calls and assets across runs of the same chat."""

    # Delivery
    typing_delay_ms: int = 1000
    """Typing indicator duration passed to the messaging channel."""

    breaker: BreakerConfig = field(default_factory=BreakerConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AgentConfig":
        """Build from a plain mapping; unknown keys are ignored."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}

        breaker = kwargs.pop("breaker", None)
        if isinstance(breaker, dict):
            breaker_known = {f.name for f in fields(BreakerConfig)}
            kwargs["breaker"] = BreakerConfig(
                **{k: v for k, v in breaker.items() if k in breaker_known}
            )
        elif isinstance(breaker, BreakerConfig):
            kwargs["breaker"] = breaker

        policy = kwargs.get("fallback_policy")
        if policy is not None and not isinstance(policy, FallbackPolicy):
            kwargs["fallback_policy"] = FallbackPolicy(str(policy).lower())

        return cls(**kwargs)

    def for_multi_step(self) -> "AgentConfig":
        """Copy with the multi-step iteration and timeout floors applied."""
        return replace(
            self,
            max_iterations=max(self.max_iterations, self.multi_step_min_iterations),
            timeout_seconds=max(self.timeout_seconds, self.multi_step_min_timeout_seconds),
            breaker=replace(self.breaker),
        )
