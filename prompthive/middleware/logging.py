import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import logging


logger = logging.getLogger("prompthive.middleware")


class LoggingMiddleware(BaseHTTPMiddleware):
    """One access line per request: method, path, duration and status."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            "%s %s - %.2fms - %s",
            request.method,
            request.url.path,
            process_time,
            response.status_code,
            extra={"method": request.method, "path": request.url.path, "status_code": response.status_code},
        )
        return response
