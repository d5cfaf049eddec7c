"""
Resilience Helpers
==================

Circuit breaker used by outbound integrations (CMDB).
"""

import time
from enum import Enum
from typing import Optional

from alertbridge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for outbound calls.

    States:
    - CLOSED: calls pass through; consecutive failures are counted
    - OPEN: after ``failure_threshold`` failures, calls are refused for
      ``recovery_timeout`` seconds
    - HALF_OPEN: a single trial call is let through. Success closes the
      circuit, failure opens it again. A trial that never reports back
      frees its slot after another ``recovery_timeout``.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._trial_started_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if time.monotonic() - self._opened_at >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                self._trial_started_at = None
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def allow_request(self) -> bool:
        """True when a call may go out now. Claims the trial slot when half open."""
        state = self.state
        if state == CircuitState.CLOSED:
            return True
        if state == CircuitState.OPEN:
            return False

        now = time.monotonic()
        if self._trial_started_at is None or now - self._trial_started_at >= self.recovery_timeout:
            self._trial_started_at = now
            return True
        return False

    def record_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info("Circuit breaker closed", extra={"circuit": self.name})
        self._failure_count = 0
        self._state = CircuitState.CLOSED
        self._opened_at = None
        self._trial_started_at = None

    def record_failure(self) -> None:
        self._failure_count += 1
        reopen = self._state == CircuitState.HALF_OPEN
        if reopen or (self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold):
            self._state = CircuitState.OPEN
            self._opened_at = time.monotonic()
            self._trial_started_at = None
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "circuit": self.name,
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )
