"""SSE (Server-Sent Events) transport for remote MCP clients."""

from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from loguru import logger
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from mcp_datetime import __version__
from mcp_datetime.config.schema import normalize_prefix
from mcp_datetime.transport.base import Transport, TransportError
from mcp_datetime.utils.logging import intercept_stdlib_loggers


class _MessageEndpoint:
    """ASGI app forwarding POSTed JSON-RPC messages to the SDK transport."""

    def __init__(self, sse: SseServerTransport):
        self._sse = sse

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.debug("Received message")
        await self._sse.handle_post_message(scope, receive, send)


class SSETransport(Transport):
    """
    Transport that serves MCP clients over HTTP/SSE.

    Routes (under an optional path prefix):
    1. GET  {prefix}/sse      opens an event stream; the first 'endpoint' event
                              carries the POST URL with a per-connection session_id
    2. POST {prefix}/message  JSON-RPC messages, routed by session_id
    3. GET  {prefix}/info     static JSON descriptor

    Every SSE connection gets its own MCP session on the shared server, so
    concurrent clients do not see each other's messages.

    Example:
        transport = SSETransport(build_server(), port=3000, prefix="/datetime")
        await transport.serve()
    """

    def __init__(
        self,
        server: Server,
        host: str = "127.0.0.1",
        port: int = 3000,
        prefix: str = "",
        shutdown_timeout: float = 5.0,
        log_level: str = "info",
        name: str = "sse",
    ):
        super().__init__(name, server)
        self.host = host
        self.port = port
        self.prefix = normalize_prefix(prefix)
        self.shutdown_timeout = shutdown_timeout
        self.log_level = log_level.lower()

        self.sse_path = f"{self.prefix}/sse"
        self.message_path = f"{self.prefix}/message"
        self.info_path = f"{self.prefix}/info"

        self._sse = SseServerTransport(self.message_path)
        self._active_connections = 0
        self._uvicorn: uvicorn.Server | None = None

    @property
    def active_connections(self) -> int:
        return self._active_connections

    def info(self) -> dict[str, Any]:
        """Descriptor served on the info route."""
        return {
            "name": "MCP DateTime Server",
            "version": __version__,
            "transport": "SSE",
            "endpoints": {
                "sse": self.sse_path,
                "message": self.message_path,
                "info": self.info_path,
            },
        }

    def build_app(self) -> Starlette:
        """Create the Starlette application with the SSE routes."""
        routes = [
            Route(self.sse_path, endpoint=self._handle_sse, methods=["GET"]),
            Route(self.message_path, endpoint=_MessageEndpoint(self._sse), methods=["POST"]),
            Route(self.info_path, endpoint=self._handle_info, methods=["GET"]),
        ]
        return Starlette(routes=routes, lifespan=self._lifespan)

    async def serve(self) -> None:
        """Run the HTTP listener until uvicorn receives SIGINT/SIGTERM or close() is called."""
        if self._uvicorn is not None:
            raise TransportError(f"Transport '{self.name}' already serving")

        intercept_stdlib_loggers("uvicorn", "uvicorn.error", "uvicorn.access")
        config = uvicorn.Config(
            self.build_app(),
            host=self.host,
            port=self.port,
            log_level=self.log_level,
            log_config=None,
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        self._uvicorn = uvicorn.Server(config)

        try:
            await self._uvicorn.serve()
        except (OSError, SystemExit) as e:
            # uvicorn exits via sys.exit(1) when the port cannot be bound
            raise TransportError(f"Failed to start HTTP listener on {self.host}:{self.port}: {e}") from e
        finally:
            self._uvicorn = None

    async def close(self) -> None:
        """Ask uvicorn to shut down gracefully."""
        if self._uvicorn is not None:
            self._uvicorn.should_exit = True

    @asynccontextmanager
    async def _lifespan(self, app: Starlette):
        logger.info(f"MCP DateTime server listening on port {self.port}")
        logger.info(f"SSE endpoint: http://{self.host}:{self.port}{self.sse_path}")
        logger.info(f"Message endpoint: http://{self.host}:{self.port}{self.message_path}")
        yield
        logger.info("Closing SSE server...")
        if self._active_connections:
            logger.info(f"Closing {self._active_connections} active MCP session(s)")

    async def _handle_sse(self, request: Request) -> Response:
        client = request.client.host if request.client else "unknown"
        logger.info(f"Received SSE connection from {client}")

        self._active_connections += 1
        self._connected = True
        try:
            async with self._sse.connect_sse(
                request.scope, request.receive, request._send
            ) as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            self._active_connections -= 1
            self._connected = self._active_connections > 0
            logger.info(f"SSE connection from {client} closed")

        # The SDK has already sent the streaming response
        return Response()

    async def _handle_info(self, request: Request) -> JSONResponse:
        return JSONResponse(self.info())
