"""
Per-request telemetry: status-bucket metrics for every request, one log line for
everything except probes. Each response carries an X-Request-ID (the caller's,
or a fresh one) so a plan edit can be traced back to the generation that built it.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tripplanner.monitoring.metrics import record_request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Probes are counted but not logged
QUIET_PATHS = frozenset({"/health", "/metrics", "/favicon.ico"})
# Trip generation over a remote catalog can take seconds; flag anything slower
SLOW_REQUEST_MS = 2000.0


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        record_request(response.status_code)
        if request.url.path in QUIET_PATHS:
            return response
        log = logger.warning if elapsed_ms >= SLOW_REQUEST_MS else logger.info
        log(
            "telemetry request request_id=%s method=%s path=%s status=%s duration_ms=%.1f slow=%s client=%s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            elapsed_ms >= SLOW_REQUEST_MS,
            _client_ip(request),
        )
        return response
