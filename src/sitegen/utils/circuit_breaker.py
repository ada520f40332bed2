"""
Circuit Breaker
===============

Keeps the generation pipeline from hammering an upstream (model provider,
GitHub) that is already failing. When a service fails repeatedly the
circuit opens and calls are rejected immediately; after a cool-down a few
trial calls are let through (half-open) before the circuit closes again.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Rejecting calls
    HALF_OPEN = "half_open"  # Probing recovery


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 5      # Failures before opening circuit
    recovery_timeout: float = 30.0  # Seconds before trying again
    success_threshold: int = 2      # Successes in half-open before closing


@dataclass
class _BreakerState:
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    opened_at: Optional[float] = None
    last_error: Optional[str] = None
    lock: Lock = field(default_factory=Lock)


class CircuitBreaker:
    """Circuit breaker shared by name across instances.

    Usage:
        breaker = CircuitBreaker("openrouter")
        if not breaker.allow_request():
            ...  # fail fast
        try:
            result = await call()
            breaker.record_success()
        except SomeError as exc:
            breaker.record_failure(exc)
    """

    _states: Dict[str, _BreakerState] = {}
    _global_lock = Lock()

    def __init__(self, name: str, config: Optional[CircuitBreakerConfig] = None):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        with CircuitBreaker._global_lock:
            self._state = CircuitBreaker._states.setdefault(name, _BreakerState())

    @property
    def state(self) -> CircuitState:
        return self._state.state

    @property
    def is_closed(self) -> bool:
        return self._state.state == CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._state.state == CircuitState.OPEN

    def retry_after(self) -> float:
        """Seconds until an open circuit will let a trial call through."""
        with self._state.lock:
            if self._state.state != CircuitState.OPEN or self._state.opened_at is None:
                return 0.0
            remaining = self.config.recovery_timeout - (time.monotonic() - self._state.opened_at)
            return max(0.0, remaining)

    def allow_request(self) -> bool:
        """Check if a call should be allowed through."""
        with self._state.lock:
            if self._state.state == CircuitState.CLOSED:
                return True

            if self._state.state == CircuitState.OPEN:
                elapsed = time.monotonic() - (self._state.opened_at or 0.0)
                if elapsed >= self.config.recovery_timeout:
                    logger.info(f"Circuit {self.name}: half-open after {elapsed:.1f}s")
                    self._state.state = CircuitState.HALF_OPEN
                    self._state.success_count = 0
                    return True
                return False

            return True

    def record_success(self) -> None:
        with self._state.lock:
            if self._state.state == CircuitState.HALF_OPEN:
                self._state.success_count += 1
                if self._state.success_count >= self.config.success_threshold:
                    logger.info(f"Circuit {self.name}: closed after {self._state.success_count} successes")
                    self._state.state = CircuitState.CLOSED
                    self._state.failure_count = 0
                    self._state.success_count = 0
                    self._state.opened_at = None
            else:
                self._state.failure_count = 0

    def record_failure(self, error: Optional[BaseException] = None) -> None:
        with self._state.lock:
            self._state.failure_count += 1
            if error is not None:
                self._state.last_error = str(error)

            if self._state.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit {self.name}: reopening after failure in half-open state")
                self._open()
            elif (self._state.state == CircuitState.CLOSED
                  and self._state.failure_count >= self.config.failure_threshold):
                logger.warning(f"Circuit {self.name}: opening after {self._state.failure_count} failures")
                self._open()

    def _open(self) -> None:
        self._state.state = CircuitState.OPEN
        self._state.opened_at = time.monotonic()
        self._state.success_count = 0

    def reset(self) -> None:
        """Force the circuit back to closed."""
        with self._state.lock:
            self._state.state = CircuitState.CLOSED
            self._state.failure_count = 0
            self._state.success_count = 0
            self._state.opened_at = None
            self._state.last_error = None

    def get_status(self) -> Dict[str, Any]:
        with self._state.lock:
            return {
                'name': self.name,
                'state': self._state.state.value,
                'failure_count': self._state.failure_count,
                'last_error': self._state.last_error,
            }


class CircuitBreakerOpenError(Exception):
    """Raised when a circuit breaker is open and rejecting requests."""


__all__ = [
    'CircuitBreaker',
    'CircuitBreakerConfig',
    'CircuitBreakerOpenError',
    'CircuitState',
]
