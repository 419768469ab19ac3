"""Configuration and resilience helpers."""

from .config import ConnectionConfig, StoreConfig
from .resilience import CircuitBreaker, CircuitBreakerConfig, CircuitState, with_retries

__all__ = [
    "StoreConfig",
    "ConnectionConfig",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "with_retries",
]
