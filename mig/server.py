"""
Where: mig/server.py
What: uvicorn integration for the abort signal.
Why: AbortHandler must drop the connection without a status line and without an error log.
"""

import asyncio
import logging
from typing import Type

from uvicorn.protocols.http.auto import AutoHTTPProtocol

from .exceptions import AbortHandler

UVICORN_ERROR_LOGGER = "uvicorn.error"


class AbortLogFilter(logging.Filter):
    """Drops uvicorn's "Exception in ASGI application" record for AbortHandler."""

    def filter(self, record: logging.LogRecord) -> bool:
        exc = record.exc_info[1] if record.exc_info else None
        return not isinstance(exc, AbortHandler)


def install_abort_log_filter() -> None:
    """Attach AbortLogFilter to uvicorn's error logger once."""
    error_logger = logging.getLogger(UVICORN_ERROR_LOGGER)
    if not any(isinstance(f, AbortLogFilter) for f in error_logger.filters):
        error_logger.addFilter(AbortLogFilter())


def abortable_protocol(base: Type[asyncio.Protocol] = AutoHTTPProtocol) -> Type[asyncio.Protocol]:
    """
    Subclass a uvicorn HTTP protocol so AbortHandler closes the connection.

    The transport is closed before uvicorn sees the exception, so the 500 it
    would send is dropped and the client only observes the disconnect.
    """

    class AbortableProtocol(base):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            app = self.app

            async def guarded(scope, receive, send):
                try:
                    await app(scope, receive, send)
                except AbortHandler:
                    self.transport.close()
                    raise

            self.app = guarded

    AbortableProtocol.__name__ = f"Abortable{base.__name__}"
    AbortableProtocol.__qualname__ = AbortableProtocol.__name__
    return AbortableProtocol
