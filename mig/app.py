"""
Where: mig/app.py
What: The Mig application: route registration root, request engine and server entry points.
Why: Owns everything shared across requests (pool, logger, error handler, renderer).
"""

import logging
import traceback
from typing import Optional, Tuple, Union

import uvicorn
from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from .config import MigConfig
from .core import request_context
from .core.context import Context
from .core.logging_config import setup_logging
from .core.pool import ContextPool
from .core.response import ASGIResponseWriter
from .exceptions import AbortHandler, HTTPError, default_error_handler
from .group import RouteGroup
from .mux import Mux
from .server import abortable_protocol, install_abort_log_filter
from .types import Handler, HTTPErrorHandler, Renderer


class Mig(RouteGroup):
    """
    Core framework instance. It is an ASGI application and the root route group.

    ``error_handler`` processes every error raised while handling a request;
    ``default_error_handler`` is used unless replaced.
    """

    def __init__(
        self,
        config: Optional[MigConfig] = None,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        super().__init__(self)
        self.config = config or MigConfig()
        self.logger = logger or logging.getLogger("mig")
        self.mux = Mux(redirect_slashes=self.config.REDIRECT_SLASHES)
        self.error_handler: HTTPErrorHandler = default_error_handler
        self.renderer: Optional[Renderer] = None
        self.pool = ContextPool(lambda: Context(self), max_idle=self.config.POOL_MAX_IDLE)
        self._server: Optional[uvicorn.Server] = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.mux(scope, receive, send)

    async def execute(self, handler: Handler, scope: Scope, receive: Receive, send: Send) -> None:
        """
        Run ``handler`` for one request.

        Errors go to ``error_handler``. Unexpected exceptions become a 500
        carrying the traceback. AbortHandler is never handled.
        """
        writer = ASGIResponseWriter(send, scope.get("method", "GET"))
        token = request_context.bind()
        try:
            with self.pool.acquire() as c:
                c.reset(Request(scope, receive), writer)
                await self._run(handler, c)
        finally:
            request_context.unbind(token)
        await writer.finish()

    async def _run(self, handler: Handler, c: Context) -> None:
        try:
            await handler(c)
        except AbortHandler:
            raise
        except HTTPError as err:
            await self.error_handler(err, c)
        except Exception as exc:
            err = HTTPError(500, internal=exc, stack=traceback.format_exc())
            await self.error_handler(err, c)

    # --- serving ---

    def _build_server(self, addr: Optional[str]) -> uvicorn.Server:
        host, port = parse_bind_addr(addr or self.config.BIND_ADDR)
        install_abort_log_filter()
        server_config = uvicorn.Config(
            self,
            host=host,
            port=port,
            http=abortable_protocol(),
            timeout_keep_alive=self.config.KEEP_ALIVE_TIMEOUT,
            timeout_graceful_shutdown=self.config.SHUTDOWN_TIMEOUT,
            log_config=None,
        )
        self._server = uvicorn.Server(server_config)
        self.logger.info("Server starting", extra={"addr": f"{host}:{port}"})
        return self._server

    async def serve(self, addr: Optional[str] = None) -> None:
        """Serve until shutdown() is called or SIGINT/SIGTERM is received."""
        server = self._build_server(addr)
        await server.serve()
        self.logger.info("Server gracefully stopped.")

    def run(self, addr: Optional[str] = None) -> None:
        """
        Configure logging, start the server and block until SIGINT/SIGTERM,
        then shut down gracefully. This is the simplest way to run the app.
        """
        setup_logging(self.config.LOG_CONFIG_PATH, self.config.LOG_LEVEL)
        server = self._build_server(addr)
        server.run()
        self.logger.info("Server gracefully stopped.")

    def shutdown(self) -> None:
        """Ask a running server to stop accepting connections and drain."""
        if self._server is None:
            return
        self.logger.info("Server shutting down...")
        self._server.should_exit = True


def parse_bind_addr(addr: str) -> Tuple[str, int]:
    """
    Split "host:port". An empty host (":8080") binds all interfaces.
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid bind address {addr!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)
