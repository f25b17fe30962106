"""
Request logging middleware with per-request trace ids.
"""
import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

ORG_PATH_PATTERN = re.compile(r"/organizations/([^/]+)")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with trace_id, organization, status and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = str(uuid.uuid4())
        request.state.trace_id = trace_id

        match = ORG_PATH_PATTERN.search(request.url.path)
        org = match.group(1) if match else "-"

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as exc:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"[{trace_id}] org={org} {request.method} {request.url.path} -> EXCEPTION after {latency_ms}ms: {exc}",
                exc_info=True,
            )
            # Re-raise for the global exception handler
            raise

        latency_ms = int((time.time() - start_time) * 1000)
        status_code = response.status_code
        log_level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"[{trace_id}] org={org} {request.method} {request.url.path} -> {status_code} ({latency_ms}ms)",
        )

        response.headers["X-Trace-ID"] = trace_id
        return response
