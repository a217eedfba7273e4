"""Callable shapes shared across the framework."""

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, TextIO

if TYPE_CHECKING:
    from .core.context import Context

# A handler completes normally or raises (HTTPError for expected failures).
Handler = Callable[["Context"], Awaitable[None]]
MiddlewareFunc = Callable[[Handler], Handler]
HTTPErrorHandler = Callable[[BaseException, "Context"], Awaitable[None]]


class Renderer(Protocol):
    """Renders the named template with ``data`` into ``out``."""

    def render(self, out: TextIO, name: str, data: Any) -> None: ...
