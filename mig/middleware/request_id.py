import secrets

from ..core.context import REQUEST_ID_HEADER, Context
from ..types import Handler, MiddlewareFunc


def request_id() -> MiddlewareFunc:
    """
    Middleware that ensures every request has an ID.

    The incoming X-Request-ID header is preferred; otherwise a random ID is
    generated.
    """

    def middleware(next_handler: Handler) -> Handler:
        async def handler(c: Context) -> None:
            rid = c.request.headers.get(REQUEST_ID_HEADER) or secrets.token_hex(8)
            c.set_request_id(rid)
            await next_handler(c)

        return handler

    return middleware
