"""Stdio transport for local MCP clients."""

from loguru import logger
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from mcp_datetime.transport.base import Transport, TransportError


class StdioTransport(Transport):
    """
    Transport that serves a single MCP client over stdin/stdout.

    Exactly one logical connection exists for the process lifetime; serve()
    returns when the client closes stdin.

    Example:
        transport = StdioTransport(build_server())
        await transport.serve()
    """

    def __init__(self, server: Server, name: str = "stdio"):
        super().__init__(name, server)

    async def serve(self) -> None:
        """Attach the server to stdio and run until EOF."""
        if self._connected:
            raise TransportError(f"Transport '{self.name}' already connected")

        try:
            async with stdio_server() as (read_stream, write_stream):
                self._connected = True
                logger.info(f"{self.server.name} connected to stdio transport")
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        except Exception as e:
            raise TransportError(f"Stdio transport failed: {e}") from e
        finally:
            self._connected = False
            logger.debug(f"StdioTransport '{self.name}': disconnected")

    async def close(self) -> None:
        """Nothing to release; the SDK owns the stdio streams."""
        self._connected = False
