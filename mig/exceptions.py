"""
Where: mig/exceptions.py
What: Structured HTTP error, the abort signal and the default error handler.
Why: Every failure leaving a handler chain is translated to a response in one place.
"""

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .core.context import Context
    from .core.response import Response


def status_text(code: int) -> str:
    """Return the standard reason phrase for ``code`` or "" if unknown."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


class HTTPError(Exception):
    """
    Error raised by handlers to produce an HTTP error response.

    ``message`` is public and sent to the client. ``internal`` (the wrapped
    cause) and ``stack`` are written to logs only.
    """

    def __init__(
        self,
        code: int,
        message: Optional[str] = None,
        internal: Optional[BaseException] = None,
        stack: str = "",
    ):
        self.code = int(code)
        self.message = status_text(code) if message is None else message
        self.internal = internal
        self.stack = stack
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.internal is not None:
            return str(self.internal)
        return self.message

    def __repr__(self) -> str:
        return f"HTTPError(code={self.code}, message={self.message!r}, internal={self.internal!r})"

    @classmethod
    def coerce(cls, err: BaseException) -> "HTTPError":
        """Return ``err`` itself or wrap it as a 500 with ``err`` as internal cause."""
        if isinstance(err, HTTPError):
            return err
        return cls(HTTPStatus.INTERNAL_SERVER_ERROR, internal=err)

    def to_dict(self) -> dict:
        """Client-visible payload."""
        return {"code": self.code, "message": self.message}


class AbortHandler(Exception):
    """
    Raised to abort a request without an error response.

    The engine never logs or handles it; it always reaches the ASGI server.
    Under ``Mig.serve``/``Mig.run`` the connection is closed without a status
    line and uvicorn's error record for it is dropped (see mig.server).
    """


BODYLESS_STATUS_CODES = frozenset({HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED})


async def write_text_error(response: "Response", message: str, code: int) -> None:
    """Write ``message`` as a plain text error body with status ``code``."""
    headers = response.headers
    if "content-length" in headers:
        del headers["content-length"]
    headers["Content-Type"] = "text/plain; charset=utf-8"
    headers["X-Content-Type-Options"] = "nosniff"
    await response.write_header(code)
    await response.write((message + "\n").encode("utf-8"))


async def default_error_handler(err: BaseException, c: "Context") -> None:
    """
    Log ``err`` and translate it into a response.

    Structured errors keep their status and message; anything else becomes a
    500. Nothing is written once the handler has sent a status or body bytes.
    """
    e = HTTPError.coerce(err)
    logger = c.app.logger
    internal = str(e.internal) if e.internal is not None else None

    if e.stack:
        logger.error(
            "panic recovered",
            extra={"id": c.request_id(), "error": internal, "stack": e.stack},
        )
    else:
        logger.error(
            "request error",
            extra={"id": c.request_id(), "code": e.code, "error": internal},
        )

    # A second status line cannot be sent once the first one is out.
    if c.response.written > 0 or c.response.committed:
        return

    if e.code in BODYLESS_STATUS_CODES:
        await c.response.write_header(e.code)
        return

    if "application/json" in c.request.headers.get("accept", ""):
        c.response.headers["Content-Type"] = "application/json; charset=utf-8"
        await c.response.write_header(e.code)
        payload = json.dumps(e.to_dict(), ensure_ascii=False, separators=(",", ":"))
        await c.response.write(payload.encode("utf-8") + b"\n")
        return

    await write_text_error(c.response, e.message, e.code)
