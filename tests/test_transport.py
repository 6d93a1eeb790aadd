"""Tests for the stdio and SSE transports."""

import asyncio
import sys
from unittest.mock import patch

import httpx
import pytest
from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.client.stdio import StdioServerParameters, stdio_client
from starlette.testclient import TestClient

from conftest import REPO_ROOT, server_env

from mcp_datetime import __version__
from mcp_datetime.server import build_server
from mcp_datetime.transport import SSETransport, StdioTransport, TransportError


class TestSSETransport:
    def test_routes_without_prefix(self):
        transport = SSETransport(build_server())

        assert transport.sse_path == "/sse"
        assert transport.message_path == "/message"
        assert transport.info_path == "/info"

    def test_prefix_is_normalized(self):
        transport = SSETransport(build_server(), prefix="datetime/")

        assert transport.prefix == "/datetime"
        assert transport.sse_path == "/datetime/sse"

    def test_info_route(self):
        transport = SSETransport(build_server(), prefix="/api")
        client = TestClient(transport.build_app())

        response = client.get("/api/info")

        assert response.status_code == 200
        assert response.json() == {
            "name": "MCP DateTime Server",
            "version": __version__,
            "transport": "SSE",
            "endpoints": {
                "sse": "/api/sse",
                "message": "/api/message",
                "info": "/api/info",
            },
        }

    def test_routes_outside_prefix_not_found(self):
        transport = SSETransport(build_server(), prefix="/api")
        client = TestClient(transport.build_app())

        assert client.get("/info").status_code == 404

    def test_message_requires_session(self):
        transport = SSETransport(build_server())
        client = TestClient(transport.build_app())

        response = client.post("/message", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

        assert response.status_code == 400

    def test_message_rejects_get(self):
        transport = SSETransport(build_server())
        client = TestClient(transport.build_app())

        assert client.get("/message").status_code == 405

    def test_bind_failure_raises_transport_error(self):
        transport = SSETransport(build_server(), port=3000)

        with patch("mcp_datetime.transport.sse.uvicorn.Server.serve", side_effect=SystemExit(1)):
            with pytest.raises(TransportError, match="Failed to start HTTP listener"):
                asyncio.run(transport.serve())

    def test_close_before_serve(self):
        transport = SSETransport(build_server())

        asyncio.run(transport.close())

        assert not transport.is_connected
        assert transport.active_connections == 0


class TestStdioTransport:
    def test_initial_state(self):
        transport = StdioTransport(build_server())

        assert transport.name == "stdio"
        assert not transport.is_connected

    def test_serve_twice_raises(self):
        transport = StdioTransport(build_server())
        transport._connected = True

        with pytest.raises(TransportError, match="already connected"):
            asyncio.run(transport.serve())

    def test_context_manager_closes(self):
        transport = StdioTransport(build_server())
        transport._connected = True

        async def run():
            async with transport:
                pass

        asyncio.run(run())

        assert not transport.is_connected


# =============================================================================
# End-to-end over real transports
# =============================================================================


async def _time_in(read_stream, write_stream, timezone: str) -> str:
    async with ClientSession(read_stream, write_stream) as session:
        await session.initialize()
        result = await session.call_tool("get-time-in-timezone", {"timezone": timezone})
        assert not result.isError
        return result.content[0].text


class TestSSEEndToEnd:
    def test_info_under_prefix(self, sse_server):
        response = httpx.get(f"{sse_server}/info", timeout=5.0)

        assert response.json()["endpoints"]["message"] == "/dt/message"

    def test_concurrent_clients_get_their_own_results(self, sse_server):
        async def client(timezone: str) -> str:
            async with sse_client(f"{sse_server}/sse") as (read_stream, write_stream):
                return await _time_in(read_stream, write_stream, timezone)

        async def both():
            return await asyncio.gather(client("Asia/Tokyo"), client("Europe/Paris"))

        tokyo, paris = asyncio.run(asyncio.wait_for(both(), timeout=30))

        assert tokyo.startswith("The current time in Asia/Tokyo is ")
        assert tokyo.endswith("+09:00")
        assert paris.startswith("The current time in Europe/Paris is ")
        assert "Asia/Tokyo" not in paris

    def test_invalid_timezone_over_sse(self, sse_server):
        async def run():
            async with sse_client(f"{sse_server}/sse") as (read_stream, write_stream):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    return await session.call_tool("get-time-in-timezone", {"timezone": "Not/AZone"})

        result = asyncio.run(asyncio.wait_for(run(), timeout=30))

        assert result.isError
        assert "list-timezones" in result.content[0].text


class TestStdioEndToEnd:
    def test_tool_call_over_stdio(self):
        params = StdioServerParameters(
            command=sys.executable,
            args=["-m", "mcp_datetime"],
            env=server_env(),
            cwd=str(REPO_ROOT),
        )

        async def run():
            async with stdio_client(params) as (read_stream, write_stream):
                return await _time_in(read_stream, write_stream, "America/New_York")

        text = asyncio.run(asyncio.wait_for(run(), timeout=30))

        assert text.startswith("The current time in America/New_York is ")
