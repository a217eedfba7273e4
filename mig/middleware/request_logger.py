"""
Where: mig/middleware/request_logger.py
What: Access log middleware.
Why: One structured line per request, written even when the handler raises.
"""

import time

from ..core.context import Context
from ..types import Handler, MiddlewareFunc


def request_logger() -> MiddlewareFunc:
    """
    Middleware that logs one line per request with timing info.

    NOTE: register request_id() before it for IDs to appear in the log,
    e.g. ``app.use(request_id(), request_logger())``.
    """

    def middleware(next_handler: Handler) -> Handler:
        async def handler(c: Context) -> None:
            start_time = time.perf_counter()
            try:
                await next_handler(c)
            finally:
                latency_ms = round((time.perf_counter() - start_time) * 1000, 2)
                c.logger.info(
                    "request",
                    extra={
                        "method": c.request.method,
                        "path": c.request.url.path,
                        "status": c.response.status,
                        "bytes": c.response.written,
                        "latency_ms": latency_ms,
                    },
                )

        return handler

    return middleware
