"""
Where: mig/core/response.py
What: ASGI response sink and the status/byte tracking wrapper around it.
Why: Handlers and the error handler need to know what was already sent.
"""

import logging
from typing import Optional, Protocol

from starlette.datastructures import MutableHeaders
from starlette.types import Send

logger = logging.getLogger("mig.response")


class ResponseSink(Protocol):
    """Anything a Response can forward to."""

    headers: MutableHeaders

    async def write_header(self, code: int) -> None: ...

    async def write(self, data: bytes) -> int: ...


class ASGIResponseWriter:
    """
    Streams a response over an ASGI ``send`` channel.

    The status line goes out on the first ``write_header`` (or the first
    ``write``, as 200). Headers set after that are not sent.
    """

    def __init__(self, send: Send, method: str = "GET"):
        self._send = send
        self.headers = MutableHeaders()
        self.status = 0
        self.started = False
        self.finished = False
        self._discard_body = method == "HEAD"

    async def write_header(self, code: int) -> None:
        if not 100 <= code <= 999:
            raise ValueError(f"invalid status code {code}")
        if self.started:
            logger.warning(
                "superfluous write_header call",
                extra={"code": code, "status": self.status},
            )
            return
        self.started = True
        self.status = code
        await self._send(
            {"type": "http.response.start", "status": code, "headers": list(self.headers.raw)}
        )

    async def write(self, data: bytes) -> int:
        if self.finished:
            raise RuntimeError("write after response was finished")
        if not self.started:
            await self.write_header(200)
        if not data or self._discard_body:
            return len(data)
        await self._send({"type": "http.response.body", "body": bytes(data), "more_body": True})
        return len(data)

    async def finish(self) -> None:
        """Send the end of the body. Safe to call more than once."""
        if self.finished:
            return
        if not self.started:
            await self.write_header(200)
        self.finished = True
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})


class Response:
    """
    Wraps a ResponseSink and records the status code and bytes written.

    The first status written wins; later ``write_header`` calls are still
    forwarded, the sink decides what to do with them.
    """

    def __init__(self, writer: Optional[ResponseSink] = None):
        self.writer = writer
        self._status = 0
        self._written = 0

    def reset(self, writer: Optional[ResponseSink]) -> None:
        self.writer = writer
        self._status = 0
        self._written = 0

    @property
    def headers(self) -> MutableHeaders:
        return self.writer.headers

    async def write_header(self, code: int) -> None:
        await self.writer.write_header(code)
        if self._status == 0:
            self._status = code

    async def write(self, data: bytes) -> int:
        # Implicit 200 if write is called before write_header
        if self._status == 0:
            await self.write_header(200)
        n = await self.writer.write(data)
        self._written += n
        return n

    @property
    def status(self) -> int:
        if self._status == 0:
            return 200
        return self._status

    @property
    def written(self) -> int:
        return self._written

    @property
    def committed(self) -> bool:
        """True once a status has been written, with or without a body."""
        return self._status != 0
