"""Custom middleware for request tracking, tracing, and logging."""

import logging
import re
import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .observability import metrics_collector

logger = logging.getLogger(__name__)

# Request bodies on these paths carry credentials and are never logged
SENSITIVE_PATH_PREFIXES = ("/api/auth", "/api/payment")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.

    The request ID is either taken from the X-Request-ID header or
    generated, echoed back on the response, and bound to the structlog
    context for the duration of the request.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.header_name] = request_id
        return response


class TraceContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that handles W3C Trace Context headers.

    https://www.w3.org/TR/trace-context/
    """

    TRACEPARENT_PATTERN = re.compile(
        r"^([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$"
    )

    def _parse_traceparent(self, traceparent: str) -> Optional[dict]:
        """Parse a W3C traceparent header, returning None when it is invalid."""
        match = self.TRACEPARENT_PATTERN.match(traceparent)
        if not match:
            return None

        version, trace_id, parent_id, flags = match.groups()

        # Only version 00 is defined; all-zero ids are invalid
        if version != "00" or trace_id == "0" * 32 or parent_id == "0" * 16:
            return None

        return {"trace_id": trace_id, "parent_id": parent_id, "flags": flags}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        tracestate = request.headers.get("tracestate")
        incoming = self._parse_traceparent(request.headers.get("traceparent", ""))

        if incoming:
            trace_id = incoming["trace_id"]
            parent_span_id = incoming["parent_id"]
            flags = incoming["flags"]
        else:
            trace_id = uuid.uuid4().hex
            parent_span_id = None
            flags = "01"

        span_id = uuid.uuid4().hex[:16]

        request.state.trace_context = {
            "trace_id": trace_id,
            "span_id": span_id,
            "parent_span_id": parent_span_id,
            "flags": flags,
            "tracestate": tracestate,
        }

        response = await call_next(request)

        response.headers["traceparent"] = f"00-{trace_id}-{span_id}-{flags}"
        if tracestate:
            response.headers["tracestate"] = tracestate

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs HTTP requests and responses.

    Logs timing, status codes and correlation IDs, and feeds the
    request counters exposed at /metrics.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        skip_paths: Optional[list] = None,
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.skip_paths = skip_paths or ["/health", "/metrics", "/favicon.ico"]

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    def _route_template(self, request: Request) -> str:
        """Use the matched route path so metric labels stay bounded."""
        route = request.scope.get("route")
        return getattr(route, "path", request.url.path)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        start_time = time.time()

        request_id = getattr(request.state, "request_id", "unknown")
        trace_context = getattr(request.state, "trace_context", {})

        log_data = {
            "request_id": request_id,
            "trace_id": trace_context.get("trace_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
        }

        if (
            self.log_request_body
            and request.method in ("POST", "PUT", "PATCH")
            and not request.url.path.startswith(SENSITIVE_PATH_PREFIXES)
        ):
            body = await request.body()
            if body:
                log_data["request_body"] = body.decode("utf-8", errors="replace")[:1000]

        logger.info("HTTP request started", extra=log_data)

        error = None
        try:
            response = await call_next(request)
        except Exception as e:
            error = str(e)
            logger.error("Unhandled error in request pipeline", extra=log_data, exc_info=True)
            response = JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "request_id": request_id},
            )

        duration = time.time() - start_time
        status_code = response.status_code

        metrics_collector.record_request(
            request.method, self._route_template(request), status_code, duration
        )

        log_data.update({
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 2),
        })
        if error:
            log_data["error"] = error

        if status_code >= 500:
            logger.error("HTTP request completed with server error", extra=log_data)
        elif status_code >= 400:
            logger.warning("HTTP request completed with client error", extra=log_data)
        else:
            logger.info("HTTP request completed successfully", extra=log_data)

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup all middleware on the FastAPI app.

    Middleware added last runs first, so request IDs are assigned before
    trace context and logging see the request.
    """
    if enable_logging:
        app.add_middleware(LoggingMiddleware, log_request_body=settings.debug)

    app.add_middleware(TraceContextMiddleware)
    app.add_middleware(RequestIDMiddleware)
