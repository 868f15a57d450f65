"""Resilience patterns for the remote leaderboard store

Circuit breaker protection and Prometheus metrics for remote calls and
push/pull outcomes.
"""

from src.resilience.circuit_breaker import (
    CircuitBreakerListener,
    create_breaker,
    guarded_call,
)
from src.resilience.metrics import (
    record_circuit_breaker_state,
    record_remote_call,
    record_remote_failure,
    record_push,
    record_pull,
)

__all__ = [
    # Circuit Breakers
    "CircuitBreakerListener",
    "create_breaker",
    "guarded_call",
    # Metrics
    "record_circuit_breaker_state",
    "record_remote_call",
    "record_remote_failure",
    "record_push",
    "record_pull",
]
