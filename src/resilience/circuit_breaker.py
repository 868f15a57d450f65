"""Circuit breaker for the remote leaderboard store

A leaderboard outage should fail fast instead of stalling every completion
on a network timeout.

    CLOSED --fail_max failures--> OPEN --reset_timeout--> HALF_OPEN
    HALF_OPEN --success--> CLOSED, HALF_OPEN --failure--> OPEN
"""

import logging
from typing import Any, Awaitable, Callable, TypeVar

import pybreaker

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Logs breaker transitions and failures and mirrors them into Prometheus"""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        previous = old_state.name if old_state else "none"
        logger.warning(f"[CIRCUIT_BREAKER] {cb.name}: {previous} → {new_state.name}")

        from src.resilience.metrics import record_circuit_breaker_state
        record_circuit_breaker_state(cb.name, new_state.name.lower())

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        logger.error(
            f"[CIRCUIT_BREAKER] {cb.name} failure {cb.fail_counter}/{cb.fail_max}: "
            f"{type(exc).__name__}: {exc}"
        )

        from src.resilience.metrics import record_remote_failure
        record_remote_failure(cb.name, type(exc).__name__)

    def success(self, cb: pybreaker.CircuitBreaker) -> None:
        logger.debug(f"[CIRCUIT_BREAKER] {cb.name} call succeeded")


def create_breaker(name: str, fail_max: int = 5, reset_timeout: int = 60) -> pybreaker.CircuitBreaker:
    """
    Build a named breaker with the logging/metrics listener attached

    Args:
        name: Also used as the metrics label
        fail_max: Consecutive failures before the circuit opens
        reset_timeout: Seconds the circuit stays open before a trial call
    """
    return pybreaker.CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=name,
        listeners=[CircuitBreakerListener()]
    )


async def guarded_call(
    breaker: pybreaker.CircuitBreaker,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Await func through breaker

    Raises:
        pybreaker.CircuitBreakerError: The circuit is open (func not called)
            or this failure just opened it
        Exception: Whatever func raised while the circuit stayed closed
    """
    try:
        return await breaker.call_async(func, *args, **kwargs)
    except pybreaker.CircuitBreakerError:
        logger.warning(f"[CIRCUIT_BREAKER] {breaker.name} is open, failing fast")
        raise
