"""
mig - a small HTTP framework on top of starlette's router.

Handlers receive a pooled Context; errors they raise are turned into
responses by a single replaceable error handler.
"""

from .app import Mig, parse_bind_addr
from .config import MigConfig
from .core import REQUEST_ID_HEADER, REQUEST_ID_KEY, Context, ContextKey, Response
from .exceptions import AbortHandler, HTTPError, default_error_handler
from .group import RouteGroup
from .types import Handler, HTTPErrorHandler, MiddlewareFunc, Renderer

__all__ = [
    "REQUEST_ID_HEADER",
    "REQUEST_ID_KEY",
    "AbortHandler",
    "Context",
    "ContextKey",
    "Handler",
    "HTTPError",
    "HTTPErrorHandler",
    "Mig",
    "MigConfig",
    "MiddlewareFunc",
    "Renderer",
    "Response",
    "RouteGroup",
    "default_error_handler",
    "parse_bind_addr",
]
