"""Per-model circuit breakers for the LLM adapters.

After ``failure_threshold`` consecutive failures a model's breaker opens
and calls fail at once with ``CircuitBreakerOpen`` instead of waiting out
a provider timeout. Once the cooldown has passed a single probe is let
through; its outcome closes or re-opens the breaker.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_COOLDOWN_SECONDS = 60.0


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    def __init__(self, endpoint: str, retry_after: float):
        self.endpoint = endpoint
        self.retry_after = retry_after
        super().__init__(f"{endpoint} is unavailable; circuit open for another {retry_after:.0f}s")


class CircuitBreaker:
    """Failure bookkeeping for one model endpoint.

    Tests pass a fake ``clock`` to step through the cooldown.
    """

    def __init__(
        self,
        endpoint: str,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.endpoint = endpoint
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def _move(self, new_state: CircuitState, reason: str) -> None:
        # Caller holds self._lock.
        if new_state is self._state:
            return
        log = logger.warning if new_state is CircuitState.OPEN else logger.info
        log("Breaker %s: %s -> %s (%s)", self.endpoint, self._state.value, new_state.value, reason)
        self._state = new_state

    def check(self) -> None:
        """Let the call proceed or raise ``CircuitBreakerOpen``."""
        with self._lock:
            if self._state is not CircuitState.OPEN:
                return
            remaining = self.cooldown_seconds - (self._clock() - self._opened_at)
            if remaining > 0:
                raise CircuitBreakerOpen(self.endpoint, remaining)
            self._move(CircuitState.HALF_OPEN, "cooldown elapsed")

    def record_success(self) -> None:
        with self._lock:
            self._consecutive_failures = 0
            self._move(CircuitState.CLOSED, "call succeeded")

    def record_failure(self) -> None:
        with self._lock:
            self._consecutive_failures += 1
            if self._state is CircuitState.HALF_OPEN:
                reason = "probe failed"
            elif self._consecutive_failures >= self.failure_threshold:
                reason = f"{self._consecutive_failures} failures in a row"
            else:
                return
            self._opened_at = self._clock()
            self._move(CircuitState.OPEN, reason)

    async def call(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Await ``fn()`` and record the outcome.

        ``CancelledError`` is a ``BaseException`` and passes through
        without counting against the endpoint.
        """
        self.check()
        try:
            result = await fn()
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result


_breakers: Dict[str, CircuitBreaker] = {}
_breakers_lock = threading.Lock()


def get_breaker(
    endpoint: str,
    failure_threshold: Optional[int] = None,
    cooldown_seconds: Optional[float] = None,
) -> CircuitBreaker:
    """Shared breaker for *endpoint*, created on first use.

    The thresholds only matter for that first call.
    """
    with _breakers_lock:
        breaker = _breakers.get(endpoint)
        if breaker is None:
            breaker = CircuitBreaker(
                endpoint,
                failure_threshold=failure_threshold or DEFAULT_FAILURE_THRESHOLD,
                cooldown_seconds=cooldown_seconds or DEFAULT_COOLDOWN_SECONDS,
            )
            _breakers[endpoint] = breaker
        return breaker


def reset_all() -> None:
    with _breakers_lock:
        _breakers.clear()
