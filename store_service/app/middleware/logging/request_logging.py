"""
HTTP request logging middleware for Store Service.

Establishes the correlation id for every request (taken from the gateway's
``X-Correlation-ID`` header or generated) and logs the request lifecycle.
"""

import time
import uuid
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.settings import get_settings
from ...utils.logging import correlation_id_var, setup_store_logging

logger = setup_store_logging(
    "store_service.request_logging", log_level=get_settings().LOG_LEVEL
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """HTTP request logging middleware for Store Service"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)
        start_time = time.time()

        logger.info(
            "HTTP request started",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "event_type": "http_request_start",
                "service": "store_service",
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"HTTP request failed: {str(e)}",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                    "error_type": type(e).__name__,
                    "event_type": "http_request_error",
                    "service": "store_service",
                },
                exc_info=True,
            )
            raise
        finally:
            correlation_id_var.reset(token)

        duration_ms = round((time.time() - start_time) * 1000, 2)
        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400 or duration_ms > 5000:
            log = logger.warning
        else:
            log = logger.info

        log(
            "HTTP request completed",
            extra={
                "correlation_id": correlation_id,
                "user_id": getattr(request.state, "user_id", "anonymous"),
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "event_type": "http_request_complete",
                "service": "store_service",
            },
        )

        response.headers["X-Correlation-ID"] = correlation_id
        return response


def setup_request_logging(app: FastAPI) -> None:
    app.add_middleware(RequestLoggingMiddleware)
