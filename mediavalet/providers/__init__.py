"""
MediaValet Providers - Circuit breakers and cross-provider fallback
"""

from .names import (
    format_provider_error,
    format_provider_name,
    normalize_provider_key,
    video_provider_display_name,
)
from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerError,
    CircuitBreakerManager,
    CircuitBreakerOpenError,
    CircuitState,
    RequestTimeoutError,
    circuit_breaker_manager,
)
from .fallback import ProviderError, ProviderFallback

__all__ = [
    "format_provider_error",
    "format_provider_name",
    "normalize_provider_key",
    "video_provider_display_name",
    "CircuitBreaker",
    "CircuitBreakerError",
    "CircuitBreakerManager",
    "CircuitBreakerOpenError",
    "CircuitState",
    "RequestTimeoutError",
    "circuit_breaker_manager",
    "ProviderError",
    "ProviderFallback",
]
