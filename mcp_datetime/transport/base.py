"""Abstract base class for MCP server transports."""

from abc import ABC, abstractmethod

from mcp.server.lowlevel import Server


class TransportError(Exception):
    """Base exception for transport errors."""
    pass


class Transport(ABC):
    """
    Abstract base class for MCP server transport implementations.

    A transport attaches an already-built MCP server to a channel and serves
    it until the channel closes or the process is asked to stop.
    Implementations: StdioTransport (local clients), SSETransport (HTTP/SSE)

    Usage:
        server = build_server()
        transport = StdioTransport(server)
        await transport.serve()
    """

    def __init__(self, name: str, server: Server):
        self.name = name
        self.server = server
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if a client is attached."""
        return self._connected

    @abstractmethod
    async def serve(self) -> None:
        """
        Serve the MCP server until the channel closes.

        Raises:
            TransportError: If the transport cannot be started.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Stop serving and release resources."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
