"""Correlation ID and access logging middleware.

Each request is tagged with a correlation ID taken from X-Correlation-ID,
or failing that the trace id of a W3C traceparent header, or a fresh UUID.
The ID is echoed on the response and bound to every log line written while
the request runs, followed by one access log line with status and duration.
"""

import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from relay.utils.logging import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
TRACEPARENT_HEADER = "traceparent"

# Caller-supplied IDs end up in log lines
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def incoming_correlation_id(request: Request) -> str | None:
    """Pick a usable correlation ID from the request headers, if any."""
    candidate = request.headers.get(CORRELATION_ID_HEADER)
    if candidate and _SAFE_ID.match(candidate):
        return candidate
    return trace_id_from_traceparent(request.headers.get(TRACEPARENT_HEADER))


def trace_id_from_traceparent(traceparent: str | None) -> str | None:
    """Extract the trace id from a traceparent header.

    Format: version-trace_id-parent_id-trace_flags
    Example: 00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01
    """
    if not traceparent:
        return None
    parts = traceparent.split("-")
    if len(parts) != 4 or not re.fullmatch(r"[0-9a-f]{32}", parts[1]):
        return None
    return parts[1]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to the request and log its outcome."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(incoming_correlation_id(request))
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.info(
                "%s %s -> %d (%d ms)",
                request.method,
                request.url.path,
                response.status_code,
                int((time.perf_counter() - started) * 1000),
                extra={"status_code": response.status_code, "path": request.url.path},
            )
            return response
        finally:
            clear_correlation_id()
