"""Unit tests for circuit breaker functionality"""
import pytest
import pybreaker
from unittest.mock import patch

from src.resilience.circuit_breaker import (
    CircuitBreakerListener,
    create_breaker,
    guarded_call,
)


@pytest.fixture
def breaker():
    """Fresh breaker per test so state never leaks between tests"""
    return create_breaker("test_store", fail_max=3, reset_timeout=60)


async def succeed(value):
    return value


async def fail(exc):
    raise exc


def test_create_breaker_defaults():
    breaker = create_breaker("leaderboard_store")

    assert breaker.name == "leaderboard_store"
    assert breaker.fail_max == 5
    assert breaker.reset_timeout == 60
    assert any(isinstance(l, CircuitBreakerListener) for l in breaker.listeners)


def test_create_breaker_returns_independent_breakers():
    assert create_breaker("a") is not create_breaker("a")


@pytest.mark.asyncio
async def test_circuit_stays_closed_on_success(breaker):
    for i in range(10):
        assert await guarded_call(breaker, succeed, i) == i

    assert breaker.current_state == pybreaker.STATE_CLOSED


@pytest.mark.asyncio
async def test_circuit_opens_after_failures(breaker):
    for _ in range(3):
        with pytest.raises((ConnectionError, pybreaker.CircuitBreakerError)):
            await guarded_call(breaker, fail, ConnectionError("down"))

    assert breaker.current_state == pybreaker.STATE_OPEN


@pytest.mark.asyncio
async def test_open_circuit_fails_fast(breaker):
    """An open circuit never calls the wrapped function"""
    calls = []

    async def tracked():
        calls.append(1)
        raise ConnectionError("down")

    for _ in range(3):
        with pytest.raises((ConnectionError, pybreaker.CircuitBreakerError)):
            await guarded_call(breaker, tracked)

    with pytest.raises(pybreaker.CircuitBreakerError):
        await guarded_call(breaker, tracked)

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_first_failure_reraises_original(breaker):
    with pytest.raises(TimeoutError):
        await guarded_call(breaker, fail, TimeoutError("slow"))

    assert breaker.fail_counter == 1


@pytest.mark.asyncio
async def test_listener_records_failure_metrics(breaker):
    with patch("src.resilience.metrics.record_remote_failure") as record_failure:
        with pytest.raises(TimeoutError):
            await guarded_call(breaker, fail, TimeoutError("slow"))

    record_failure.assert_called_once_with("test_store", "TimeoutError")


@pytest.mark.asyncio
async def test_listener_records_state_change(breaker):
    with patch("src.resilience.metrics.record_circuit_breaker_state") as record_state:
        for _ in range(3):
            with pytest.raises((ConnectionError, pybreaker.CircuitBreakerError)):
                await guarded_call(breaker, fail, ConnectionError("down"))

    record_state.assert_called_with("test_store", "open")
