"""
Request Middleware for the Walk Check-in service.

Rate limiting for credential endpoints and per-request timing logs.
"""

import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# ============== Rate Limiting ==============

# Initialize slowapi limiter with default key function
limiter = Limiter(key_func=get_remote_address)


# ============== Timing Middleware ==============

class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and elapsed time of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"
        logger.info(
            f"Request [{request.method}] {request.url.path} -> "
            f"{response.status_code} took {elapsed_ms:.1f}ms"
        )
        return response
