"""
MediaValet Circuit Breaker - Per (provider, tool) failure isolation

A breaker wraps single provider calls with a deadline and stops calling a
provider that keeps failing until a cool-down has passed.

States:
    CLOSED     normal operation, failures are counted
    OPEN       calls are rejected immediately until next_attempt_time
    HALF_OPEN  one probe decides between CLOSED and OPEN

Usage:
    breaker = circuit_breaker_manager.get_breaker("gemini_create_image")
    result = await breaker.execute(lambda: provider.generate(prompt))
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RESET_TIMEOUT_SECONDS = 60.0


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CircuitBreakerError(Exception):
    """Base class for errors raised by a circuit breaker."""

    code = "CIRCUIT_BREAKER_ERROR"

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(message)


class CircuitBreakerOpenError(CircuitBreakerError):
    """Raised when a call is rejected because the breaker is OPEN."""

    code = "CIRCUIT_BREAKER_OPEN"

    def __init__(self, service: str, next_attempt_time: Optional[float]):
        self.next_attempt_time = next_attempt_time
        super().__init__(
            service,
            f"Circuit breaker is OPEN for {service}. Service is unavailable.",
        )


class RequestTimeoutError(CircuitBreakerError):
    """Raised when the wrapped call exceeds the breaker timeout."""

    code = "REQUEST_TIMEOUT"

    def __init__(self, service: str, timeout: float):
        self.timeout = timeout
        super().__init__(service, f"Request timeout for {service} ({timeout:g}s)")


StateChangeCallback = Callable[[str, str, str], None]


# ---------------------------------------------------------------------------
# CircuitBreaker
# ---------------------------------------------------------------------------

class CircuitBreaker:
    """
    Three-state circuit breaker for one dependency.

    Args:
        name: Breaker key, conventionally "<provider>_<tool>"
        failure_threshold: Failures in CLOSED before tripping to OPEN
        timeout: Per-call deadline in seconds
        reset_timeout: Cool-down in seconds before an OPEN breaker probes
        on_state_change: Optional callback(name, old_state, new_state)
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        reset_timeout: float = DEFAULT_RESET_TIMEOUT_SECONDS,
        on_state_change: Optional[StateChangeCallback] = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.reset_timeout = reset_timeout
        self.on_state_change = on_state_change

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[float] = None
        self.next_attempt_time: Optional[float] = None

        self.stats: Dict[str, int] = {
            "total_requests": 0,
            "total_failures": 0,
            "total_successes": 0,
            "state_changes": 0,
        }

    async def execute(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run ``fn()`` through the breaker.

        Raises:
            CircuitBreakerOpenError: the breaker is OPEN and still cooling down
            RequestTimeoutError: the call exceeded ``timeout``
            Exception: whatever ``fn`` raised (counted as a failure)
        """
        self.stats["total_requests"] += 1
        self._update_state()

        if self.state == CircuitState.OPEN:
            self.stats["total_failures"] += 1
            raise CircuitBreakerOpenError(self.name, self.next_attempt_time)

        try:
            result = await asyncio.wait_for(fn(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._on_failure()
            raise RequestTimeoutError(self.name, self.timeout) from None
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _update_state(self) -> None:
        now = time.monotonic()

        if self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            self._trip(now)
        elif (
            self.state == CircuitState.OPEN
            and self.next_attempt_time is not None
            and now >= self.next_attempt_time
        ):
            self._transition_to(CircuitState.HALF_OPEN)
            self.failure_count = 0
            self.success_count = 0
            logger.info(f"[CircuitBreaker] {self.name}: probing after cool-down")

    def _on_success(self) -> None:
        self.stats["total_successes"] += 1
        self.success_count += 1

        if self.state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.CLOSED)
            self.failure_count = 0
            self.next_attempt_time = None
            logger.info(f"[CircuitBreaker] {self.name}: recovered")
        elif self.state == CircuitState.CLOSED:
            self.failure_count = max(0, self.failure_count - 1)

    def _on_failure(self) -> None:
        now = time.monotonic()
        self.stats["total_failures"] += 1
        self.failure_count += 1
        self.last_failure_time = now

        if self.state == CircuitState.HALF_OPEN:
            self._trip(now)
        elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            self._trip(now)

    def _trip(self, now: float) -> None:
        self._transition_to(CircuitState.OPEN)
        self.next_attempt_time = now + self.reset_timeout
        logger.warning(
            f"[CircuitBreaker] {self.name}: OPEN after {self.failure_count} failures, "
            f"retry in {self.reset_timeout:g}s"
        )

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self.state
        self.state = new_state
        self.stats["state_changes"] += 1
        if self.on_state_change is not None:
            try:
                self.on_state_change(self.name, old_state.value, new_state.value)
            except Exception as e:
                logger.warning(f"[CircuitBreaker] State change callback failed: {e}")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def is_open(self) -> bool:
        self._update_state()
        return self.state == CircuitState.OPEN

    def is_closed(self) -> bool:
        self._update_state()
        return self.state == CircuitState.CLOSED

    def get_state(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "last_failure_time": self.last_failure_time,
            "next_attempt_time": self.next_attempt_time,
            "stats": dict(self.stats),
        }

    def reset(self) -> None:
        """Return to CLOSED and clear counters. Stats are kept."""
        if self.state != CircuitState.CLOSED:
            self._transition_to(CircuitState.CLOSED)
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = None
        self.next_attempt_time = None


# ---------------------------------------------------------------------------
# CircuitBreakerManager
# ---------------------------------------------------------------------------

class CircuitBreakerManager:
    """
    Lazily creates and caches one breaker per key for the process lifetime.

    Args:
        defaults: Default breaker options merged under per-call overrides
        on_state_change: Callback installed on every breaker it creates
    """

    def __init__(
        self,
        defaults: Optional[Dict[str, Any]] = None,
        on_state_change: Optional[StateChangeCallback] = None,
    ):
        self.defaults: Dict[str, Any] = {
            "failure_threshold": DEFAULT_FAILURE_THRESHOLD,
            "timeout": DEFAULT_TIMEOUT_SECONDS,
            "reset_timeout": DEFAULT_RESET_TIMEOUT_SECONDS,
        }
        if defaults:
            self.defaults.update(defaults)
        self.on_state_change = on_state_change
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get_breaker(self, name: str, **overrides: Any) -> CircuitBreaker:
        breaker = self._breakers.get(name)
        if breaker is None:
            options = {**self.defaults, **overrides}
            options.setdefault("on_state_change", self.on_state_change)
            breaker = CircuitBreaker(name=name, **options)
            self._breakers[name] = breaker
        return breaker

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: breaker.get_state() for name, breaker in self._breakers.items()}

    def clear(self) -> None:
        """Drop every cached breaker."""
        self._breakers.clear()


# Process-wide registry
circuit_breaker_manager = CircuitBreakerManager()
