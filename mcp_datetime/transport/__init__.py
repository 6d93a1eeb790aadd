"""MCP server transports - stdio for local clients, HTTP/SSE for remote ones."""

from mcp_datetime.transport.base import Transport, TransportError
from mcp_datetime.transport.stdio import StdioTransport
from mcp_datetime.transport.sse import SSETransport

__all__ = ["Transport", "TransportError", "StdioTransport", "SSETransport"]
