"""
Core request lifecycle package.

Provides the pooled Context, the response wrapper and request-scoped storage.
"""

from .context import REQUEST_ID_HEADER, Context
from .pool import ContextPool
from .request_context import REQUEST_ID_KEY, ContextKey
from .response import ASGIResponseWriter, Response, ResponseSink

__all__ = [
    "REQUEST_ID_HEADER",
    "REQUEST_ID_KEY",
    "ASGIResponseWriter",
    "Context",
    "ContextKey",
    "ContextPool",
    "Response",
    "ResponseSink",
]
