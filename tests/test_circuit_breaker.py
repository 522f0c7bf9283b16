"""
Tests for the async circuit breaker.
"""

import asyncio
import time

import pytest

from leave_portal.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState


async def succeed():
    return "success"


async def fail():
    raise ConnectionError("Test failure")


def run(coro):
    return asyncio.run(coro)


def open_circuit(cb, times):
    for _ in range(times):
        with pytest.raises(ConnectionError):
            run(cb.call(fail))


class TestCircuitBreaker:
    """Test circuit breaker functionality."""

    def test_initial_state_closed(self):
        """Circuit breaker should start in CLOSED state."""
        cb = CircuitBreaker(failure_threshold=3, timeout=5)
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_successful_call_in_closed_state(self):
        cb = CircuitBreaker(failure_threshold=3)

        assert run(cb.call(succeed)) == "success"
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_arguments_are_forwarded(self):
        cb = CircuitBreaker()

        async def add(a, b=0):
            return a + b

        assert run(cb.call(add, 2, b=3)) == 5

    def test_single_failure_stays_closed(self):
        cb = CircuitBreaker(failure_threshold=3)

        open_circuit(cb, 1)

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 1

    def test_threshold_failures_opens_circuit(self):
        cb = CircuitBreaker(failure_threshold=3)

        open_circuit(cb, 3)

        assert cb.state == CircuitState.OPEN
        assert cb.failure_count == 3

    def test_open_circuit_blocks_calls(self):
        """Open circuit should not await the wrapped function at all."""
        cb = CircuitBreaker(failure_threshold=2)
        open_circuit(cb, 2)
        calls = []

        async def tracked():
            calls.append(1)

        with pytest.raises(CircuitBreakerOpenError):
            run(cb.call(tracked))
        assert calls == []

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=3)
        open_circuit(cb, 2)

        run(cb.call(succeed))

        assert cb.failure_count == 0

    def test_half_open_success_closes_circuit(self):
        cb = CircuitBreaker(failure_threshold=2, timeout=1)
        open_circuit(cb, 2)

        time.sleep(1.1)

        assert run(cb.call(succeed)) == "success"
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_half_open_failure_reopens_circuit(self):
        cb = CircuitBreaker(failure_threshold=2, timeout=1)
        open_circuit(cb, 2)

        time.sleep(1.1)
        open_circuit(cb, 1)

        assert cb.state == CircuitState.OPEN

    def test_ignored_errors_do_not_count(self):
        """Failures the predicate rejects propagate without tripping."""
        cb = CircuitBreaker(failure_threshold=1, trip_on=lambda e: isinstance(e, ConnectionError))

        async def bad_input():
            raise ValueError("400")

        with pytest.raises(ValueError):
            run(cb.call(bad_input))

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_get_state_returns_dict(self):
        cb = CircuitBreaker(failure_threshold=5, name="TestBreaker")

        state = cb.get_state()

        assert state["name"] == "TestBreaker"
        assert state["state"] == "closed"
        assert state["failure_count"] == 0
        assert state["failure_threshold"] == 5
