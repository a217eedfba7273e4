"""
Route groups: shared path prefixes and middleware.
"""

from typing import TYPE_CHECKING, Callable, List, Optional

from starlette.types import Receive, Scope, Send

from .types import Handler, MiddlewareFunc

if TYPE_CHECKING:
    from .app import Mig


class Endpoint:
    """ASGI adapter that runs a composed handler through the app's engine."""

    def __init__(self, app: "Mig", handler: Handler):
        self.app = app
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app.execute(self.handler, scope, receive, send)


class RouteGroup:
    """
    A group of routes with a common prefix and shared middleware.

    A child group copies its parent's middleware when it is created.
    Middleware added to the parent later does not reach the child.
    """

    def __init__(
        self,
        app: "Mig",
        prefix: str = "",
        middlewares: Optional[List[MiddlewareFunc]] = None,
        parent: Optional["RouteGroup"] = None,
    ):
        self.app = app
        self.prefix = prefix
        self.parent = parent
        self.middlewares: List[MiddlewareFunc] = list(middlewares or [])

    def group(self, prefix: str, *middlewares: MiddlewareFunc) -> "RouteGroup":
        """Create a child group with a common prefix and shared middleware."""
        return RouteGroup(
            self.app,
            self.prefix + prefix,
            [*self.middlewares, *middlewares],
            parent=self,
        )

    def use(self, *middlewares: MiddlewareFunc) -> None:
        """Add middleware to the group. Routes registered earlier are not affected."""
        self.middlewares.extend(middlewares)

    def compose(self, handler: Handler) -> Handler:
        """Wrap ``handler`` so that the first registered middleware runs first."""
        for middleware in reversed(self.middlewares):
            handler = middleware(handler)
        return handler

    def handle_raw(self, pattern: str, handler: Handler) -> None:
        """
        Register a handler for a raw mux pattern ("[METHOD ]/path").

        The group prefix is NOT applied. All group middleware is.
        """
        self.app.mux.register(pattern, Endpoint(self.app, self.compose(handler)))

    def handle(self, method: str, path: str, handler: Handler) -> None:
        """Register a handler for a method (empty = any) and a prefixed path."""
        full_path = self.prefix + path
        pattern = f"{method} {full_path}" if method else full_path
        self.handle_raw(pattern, handler)

    def _route(self, method: str, path: str, handler: Optional[Handler]):
        if handler is not None:
            self.handle(method, path, handler)
            return handler

        def decorator(func: Handler) -> Handler:
            self.handle(method, path, func)
            return func

        return decorator

    def get(self, path: str, handler: Optional[Handler] = None) -> Callable:
        """Register a GET (and HEAD) handler; without one, return a decorator."""
        return self._route("GET", path, handler)

    def post(self, path: str, handler: Optional[Handler] = None) -> Callable:
        return self._route("POST", path, handler)

    def put(self, path: str, handler: Optional[Handler] = None) -> Callable:
        return self._route("PUT", path, handler)

    def patch(self, path: str, handler: Optional[Handler] = None) -> Callable:
        return self._route("PATCH", path, handler)

    def delete(self, path: str, handler: Optional[Handler] = None) -> Callable:
        return self._route("DELETE", path, handler)

    def any(self, path: str, handler: Optional[Handler] = None) -> Callable:
        """Register a handler for every HTTP method."""
        return self._route("", path, handler)
