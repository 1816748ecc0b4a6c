"""Request logging middleware."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from asclepius.logging_config import get_logger, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log its outcome and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()

        logger.info(
            "%s %s started",
            request.method,
            request.url.path,
            extra={
                "extra_fields": {
                    "client_ip": request.client.host if request.client else None,
                    "content_length": request.headers.get("content-length"),
                }
            },
        )

        try:
            response = await call_next(request)

            logger.info(
                "%s %s completed",
                request.method,
                request.url.path,
                extra={
                    "extra_fields": {
                        "status_code": response.status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    }
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception:
            logger.exception(
                "%s %s crashed",
                request.method,
                request.url.path,
                extra={
                    "extra_fields": {
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2)
                    }
                },
            )
            raise

        finally:
            request_id_ctx.reset(token)
