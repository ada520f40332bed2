"""Tests for circuit breaker utility."""

import pytest

from sitegen.utils.circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitState


@pytest.mark.unit
class TestCircuitBreaker:
    """Test CircuitBreaker class."""

    def test_initial_state_is_closed(self):
        breaker = CircuitBreaker("test-initial")
        assert breaker.state == CircuitState.CLOSED
        assert breaker.is_closed
        assert not breaker.is_open
        assert breaker.allow_request() is True

    def test_opens_after_threshold_failures(self):
        breaker = CircuitBreaker("test-open", CircuitBreakerConfig(failure_threshold=3, recovery_timeout=60.0))

        breaker.record_failure()
        breaker.record_failure()
        assert breaker.is_closed

        breaker.record_failure(ConnectionError("refused"))
        assert breaker.is_open
        assert breaker.allow_request() is False
        assert 0 < breaker.retry_after() <= 60.0
        assert breaker.get_status()['last_error'] == 'refused'

    def test_success_resets_failure_count(self):
        breaker = CircuitBreaker("test-success", CircuitBreakerConfig(failure_threshold=2))
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()
        assert breaker.is_closed
        assert breaker.get_status()['failure_count'] == 1

    def test_half_open_closes_after_successes(self):
        breaker = CircuitBreaker("test-half-open", CircuitBreakerConfig(
            failure_threshold=1, recovery_timeout=0.0, success_threshold=2,
        ))
        breaker.record_failure()
        assert breaker.is_open

        assert breaker.allow_request() is True
        assert breaker.state == CircuitState.HALF_OPEN
        breaker.record_success()
        assert breaker.state == CircuitState.HALF_OPEN
        breaker.record_success()
        assert breaker.is_closed

    def test_half_open_failure_reopens(self):
        breaker = CircuitBreaker("test-reopen", CircuitBreakerConfig(failure_threshold=1, recovery_timeout=0.0))
        breaker.record_failure()
        breaker.allow_request()
        breaker.record_failure()
        assert breaker.is_open

    def test_state_is_shared_by_name(self):
        first = CircuitBreaker("test-shared", CircuitBreakerConfig(failure_threshold=1))
        second = CircuitBreaker("test-shared")
        first.record_failure()
        assert second.is_open

    def test_reset(self):
        breaker = CircuitBreaker("test-reset", CircuitBreakerConfig(failure_threshold=1))
        breaker.record_failure(RuntimeError("boom"))
        breaker.reset()
        assert breaker.is_closed
        assert breaker.retry_after() == 0.0
        assert breaker.get_status() == {
            'name': 'test-reset', 'state': 'closed', 'failure_count': 0, 'last_error': None,
        }
