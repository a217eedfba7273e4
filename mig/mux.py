"""
Where: mig/mux.py
What: Request multiplexer backed by starlette's Router.
Why: Matching, path parameters, 404/405 and trailing slash redirects stay the router's job.
"""

from typing import Dict, Optional, Tuple

from starlette.routing import Route, Router
from starlette.types import ASGIApp, Receive, Scope, Send


def split_pattern(pattern: str) -> Tuple[Optional[str], str]:
    """
    Split "[METHOD ]/path" into its method (None for any) and path.
    """
    pattern = pattern.strip()
    if " " in pattern:
        method, path = pattern.split(" ", 1)
        return method.upper(), path.strip()
    return None, pattern


class MethodDispatch:
    """
    ASGI app behind one route path, picking the endpoint by request method.

    HEAD falls back to the GET endpoint; any other method without its own
    endpoint goes to the catch-all one, if registered.
    """

    def __init__(self):
        self.endpoints: Dict[str, ASGIApp] = {}
        self.fallback: Optional[ASGIApp] = None

    def lookup(self, method: str) -> Optional[ASGIApp]:
        endpoint = self.endpoints.get(method)
        if endpoint is None and method == "HEAD":
            endpoint = self.endpoints.get("GET")
        return endpoint or self.fallback

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # The route only lets through methods that resolve to an endpoint.
        await self.lookup(scope["method"])(scope, receive, send)


class Mux:
    """
    Dispatches requests to registered endpoints.

    Patterns follow "[METHOD ]/path/{param}". A GET route also answers HEAD.
    Every method registered for one path shares a single route, so a 405
    lists all of them in ``Allow``.
    """

    def __init__(self, redirect_slashes: bool = True):
        self.router = Router(redirect_slashes=redirect_slashes)
        self._routes: Dict[str, Tuple[Route, MethodDispatch]] = {}

    def register(self, pattern: str, endpoint: ASGIApp) -> None:
        method, path = split_pattern(pattern)
        if not path.startswith("/"):
            raise ValueError(f"invalid pattern {pattern!r}: path must start with '/'")

        if path not in self._routes:
            dispatch = MethodDispatch()
            route = Route(path, dispatch, methods=[method] if method else None)
            self._routes[path] = (route, dispatch)
            self.router.routes.append(route)
        route, dispatch = self._routes[path]

        if method is None:
            if dispatch.fallback is not None:
                raise ValueError(f"pattern {pattern!r} conflicts with an existing route")
            dispatch.fallback = endpoint
            route.methods = None
            return

        if method in dispatch.endpoints:
            raise ValueError(f"pattern {pattern!r} conflicts with an existing route")
        dispatch.endpoints[method] = endpoint
        if route.methods is not None:
            route.methods.add(method)
            if method == "GET":
                route.methods.add("HEAD")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.router(scope, receive, send)
