"""Request context middleware: request id, project binding, timing, logging and rate limiting.

Everything happens in one pass over the request:

- ``X-Request-ID`` is taken from the caller or generated.
- For ``/api/projects/<id>/...`` paths the project id is bound into the
  logging context, so every record emitted while serving the request
  carries it.
- Each client gets a token bucket sized by ``RATE_LIMIT_PER_MINUTE``.
- One structured log line is written per response.
"""

import logging
import re
import threading
import time
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import project_id_var, request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

_PROJECT_PATH = re.compile(r"^/api/projects/([^/]+)")

# Health probes and docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


class RateLimiter:
    """Per-client token buckets refilled continuously at ``per_minute / 60`` tokens a second."""

    def __init__(
        self,
        per_minute: Callable[[], int],
        clock: Callable[[], float] = time.monotonic,
        idle_eviction_seconds: float = 120.0,
    ):
        self._per_minute = per_minute
        self._clock = clock
        self._idle_eviction_seconds = idle_eviction_seconds
        self._buckets: dict[str, tuple[float, float]] = {}
        self._lock = threading.Lock()
        self._calls = 0

    def _evict_idle(self, now: float) -> None:
        cutoff = now - self._idle_eviction_seconds
        for key in [k for k, (_, seen) in self._buckets.items() if seen < cutoff]:
            del self._buckets[key]

    def allow(self, key: str, now: Optional[float] = None) -> tuple[bool, float]:
        """Take one token for *key*.

        Returns ``(allowed, retry_after_seconds)``. A limit of 0 or less
        disables throttling.
        """
        capacity = self._per_minute()
        if capacity <= 0:
            return True, 0.0
        now = self._clock() if now is None else now
        rate = capacity / 60.0

        with self._lock:
            self._calls += 1
            if self._calls % 100 == 0:
                self._evict_idle(now)

            tokens, seen = self._buckets.get(key, (float(capacity), now))
            tokens = min(float(capacity), tokens + (now - seen) * rate)
            if tokens >= 1.0:
                self._buckets[key] = (tokens - 1.0, now)
                return True, 0.0
            self._buckets[key] = (tokens, now)
            return False, (1.0 - tokens) / rate

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


rate_limiter = RateLimiter(lambda: settings.rate_limit_per_minute)


def _client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)
        match = _PROJECT_PATH.match(request.url.path)
        project_id_var.set(match.group(1) if match else "")

        if request.url.path not in _EXEMPT_PATHS:
            key = _client_key(request)
            allowed, retry_after = rate_limiter.allow(key)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": ErrorCode.RATE_LIMITED.value,
                        "message": "Too many requests",
                        "details": {"retry_after": round(retry_after, 1)},
                    },
                    headers={"Retry-After": str(int(retry_after) + 1), "X-Request-ID": rid},
                )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
