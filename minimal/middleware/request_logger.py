# ==============================================================================
# REQUEST LOGGER MIDDLEWARE
# ==============================================================================
# One log line per request, friendly or structured
# ==============================================================================

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

REQUEST_FORMAT = (
    "HTTP  {method} {uri} -> RESP {status} (took {latency}) "
    "(▼{bytes_in}B  ▲{bytes_out}B)"
)


def _uri(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Logs method, URI, status, latency and body sizes for each request
    and adds an ``X-Request-ID`` header for tracing. Friendly mode writes
    one readable line; otherwise the fields are attached to the record
    so the JSON formatter emits them as keys.
    """

    def __init__(self, app: ASGIApp, friendly: bool = True) -> None:
        super().__init__(app)
        self.friendly = friendly

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Process request with logging."""
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[{request_id}] {request.method} {_uri(request)} "
                f"- Error ({duration_ms:.2f}ms): {str(e)}"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        fields = {
            "request_id": request_id,
            "method": request.method,
            "uri": _uri(request),
            "status": response.status_code,
            "latency_ms": round(duration_ms, 3),
            "bytes_in": int(request.headers.get("content-length") or 0),
            "bytes_out": int(response.headers.get("content-length") or 0),
        }

        log_level = logging.INFO if response.status_code < 400 else logging.WARNING
        if self.friendly:
            logger.log(
                log_level,
                REQUEST_FORMAT.format(
                    method=fields["method"],
                    uri=fields["uri"],
                    status=fields["status"],
                    latency=f"{duration_ms:.2f}ms",
                    bytes_in=fields["bytes_in"],
                    bytes_out=fields["bytes_out"],
                ),
            )
        else:
            logger.log(log_level, "request", extra={"fields": fields})

        response.headers["X-Request-ID"] = request_id
        return response
