"""
Request tracing middleware

- RequestIDMiddleware: accepts or generates X-Request-ID and echoes it back
- RequestLoggingMiddleware: logs method, path, status and duration
"""
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id available as ``request.state.request_id``"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid.uuid4()))
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request once it completes. Query values for secrets are masked."""

    SENSITIVE_PARAMS = {
        "password",
        "token",
        "secret",
        "code",
    }

    def _mask_params(self, params: dict) -> dict:
        return {
            key: "***MASKED***" if any(s in key.lower() for s in self.SENSITIVE_PARAMS) else value
            for key, value in params.items()
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        request_id = getattr(request.state, "request_id", "unknown")

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{request_id}] {request.method} {request.url.path} failed")
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"{self._mask_params(dict(request.query_params)) or ''} "
            f"-> {response.status_code} ({duration_ms:.2f}ms)"
        )
        return response
