"""Prometheus metrics for leaderboard synchronization

Covers the remote store circuit breaker, remote calls, and push/pull outcomes.
"""

import logging
from prometheus_client import Counter, Histogram, Enum

logger = logging.getLogger(__name__)

# Values: closed, open, half_open
circuit_breaker_state = Enum(
    'leaderboard_circuit_breaker_state',
    'Current state of the remote store circuit breaker',
    ['store'],
    states=['closed', 'open', 'half_open']
)

# Labels: operation (upsert/fetch_top/fetch_entry/count_above/delete), status (success/failure)
remote_calls_total = Counter(
    'leaderboard_remote_calls_total',
    'Total number of remote store calls',
    ['operation', 'status']
)

remote_call_duration = Histogram(
    'leaderboard_remote_call_duration_seconds',
    'Duration of remote store calls in seconds',
    ['operation'],
    buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, float('inf'))
)

# Labels: store, error_type (ConnectTimeout/HTTPStatusError/etc)
remote_failures_total = Counter(
    'leaderboard_remote_failures_total',
    'Total number of remote store failures',
    ['store', 'error_type']
)

# Labels: status (success/failure/skipped)
pushes_total = Counter(
    'leaderboard_pushes_total',
    'Leaderboard push attempts',
    ['status']
)

# Labels: status (success/failure/throttled/in_flight/skipped)
pulls_total = Counter(
    'leaderboard_pulls_total',
    'Leaderboard pull attempts',
    ['status']
)


def record_circuit_breaker_state(store: str, state: str) -> None:
    """
    Record circuit breaker state change.

    Args:
        store: Breaker name (leaderboard_store)
        state: New state (closed, open, half_open)
    """
    try:
        circuit_breaker_state.labels(store=store).state(state)
        logger.debug(f"[METRICS] Circuit breaker {store} state: {state}")
    except Exception as e:
        logger.error(f"Failed to record circuit breaker state: {e}")


def record_remote_call(operation: str, success: bool, duration: float) -> None:
    try:
        status = 'success' if success else 'failure'
        remote_calls_total.labels(operation=operation, status=status).inc()
        remote_call_duration.labels(operation=operation).observe(duration)
        logger.debug(f"[METRICS] Remote {operation}: {status}, duration: {duration:.2f}s")
    except Exception as e:
        logger.error(f"Failed to record remote call metrics: {e}")


def record_remote_failure(store: str, error_type: str) -> None:
    try:
        remote_failures_total.labels(store=store, error_type=error_type).inc()
        logger.debug(f"[METRICS] Remote failure {store}: {error_type}")
    except Exception as e:
        logger.error(f"Failed to record remote failure: {e}")


def record_push(status: str) -> None:
    try:
        pushes_total.labels(status=status).inc()
    except Exception as e:
        logger.error(f"Failed to record push: {e}")


def record_pull(status: str) -> None:
    try:
        pulls_total.labels(status=status).inc()
    except Exception as e:
        logger.error(f"Failed to record pull: {e}")
