"""MCP server exposing the timezone queries as tools and resources."""

from typing import Any
from urllib.parse import quote, unquote

import mcp.types as types
from loguru import logger
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from pydantic import AnyUrl

from mcp_datetime import SERVER_NAME, __version__
from mcp_datetime.timezones import (
    COMMON_TIMEZONES,
    InvalidTimezoneError,
    current_timezone,
    format_now,
    format_timezone_list,
    is_valid_timezone,
)


URI_SCHEME = "datetime://"
LIST_URI = f"{URI_SCHEME}list"
TEMPLATE_URI = f"{URI_SCHEME}{{timezone}}"
MIME_TYPE = "text/plain"


class ToolError(Exception):
    """Raised by a tool handler; the SDK reports it as an error-flagged result."""
    pass


TOOLS = [
    types.Tool(
        name="get-current-time",
        description="Get the current time in the configured local timezone",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="get-current-timezone",
        description="Get the current system timezone",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="get-time-in-timezone",
        description="Get the current time in a specific timezone",
        inputSchema={
            "type": "object",
            "properties": {
                "timezone": {
                    "type": "string",
                    "description": "The timezone to get the current time for",
                },
            },
            "required": ["timezone"],
        },
    ),
    types.Tool(
        name="list-timezones",
        description="List all available timezones",
        inputSchema={"type": "object", "properties": {}},
    ),
]


def get_current_time() -> str:
    timezone = current_timezone()
    return f"The current time in {timezone} is {format_now(timezone)}"


def get_current_timezone() -> str:
    return f"The current timezone is {current_timezone()}"


def get_time_in_timezone(timezone: str) -> str:
    if not is_valid_timezone(timezone):
        raise ToolError(
            f'Error: Invalid timezone "{timezone}". '
            'Use the "list-timezones" tool to see available options.'
        )
    return f"The current time in {timezone} is {format_now(timezone)}"


def list_timezones_text() -> str:
    return format_timezone_list()


def run_tool(name: str, arguments: dict[str, Any] | None) -> str:
    """
    Dispatch a tool call by name.

    Raises:
        ToolError: Unknown tool or invalid timezone argument.
    """
    arguments = arguments or {}

    if name == "get-current-time":
        return get_current_time()
    elif name == "get-current-timezone":
        return get_current_timezone()
    elif name == "get-time-in-timezone":
        return get_time_in_timezone(str(arguments.get("timezone", "")))
    elif name == "list-timezones":
        return list_timezones_text()
    else:
        raise ToolError(f"Unknown tool: {name}")


def timezone_from_uri(uri: str) -> str:
    """Extract the percent-decoded timezone identifier from a datetime:// URI."""
    if not uri.startswith(URI_SCHEME):
        raise ValueError(f"Unknown resource: {uri}")
    return unquote(uri[len(URI_SCHEME):].rstrip("/"))


def read_datetime_resource(uri: str) -> str:
    """
    Read a datetime:// resource.

    Raises:
        InvalidTimezoneError: The URI names a timezone the host does not know.
    """
    timezone = timezone_from_uri(uri)
    if timezone == "list":
        return list_timezones_text()
    if not is_valid_timezone(timezone):
        raise InvalidTimezoneError(timezone)
    return f"Current time in {timezone}: {format_now(timezone)}"


def list_resources() -> list[types.Resource]:
    """The list resource plus one entry per common timezone."""
    resources = [
        types.Resource(
            uri=AnyUrl(LIST_URI),
            name="datetime-list",
            description="List all available timezones",
            mimeType=MIME_TYPE,
        )
    ]
    for timezone in COMMON_TIMEZONES:
        resources.append(
            types.Resource(
                uri=AnyUrl(f"{URI_SCHEME}{quote(timezone, safe='')}"),
                name=f"Current time in {timezone}",
                description=f"Get the current time in the {timezone} timezone",
                mimeType=MIME_TYPE,
            )
        )
    return resources


def build_server(name: str = SERVER_NAME, version: str = __version__) -> Server:
    """Create an MCP server with the datetime tools and resources registered."""
    server = Server(name, version=version)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return TOOLS

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        logger.debug(f"Tool call: {name} {arguments or {}}")
        try:
            text = run_tool(name, arguments)
        except ToolError as e:
            logger.info(f"Tool {name} rejected: {e}")
            raise
        return [types.TextContent(type="text", text=text)]

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        return list_resources()

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=TEMPLATE_URI,
                name="datetime-template",
                description="Get the current time in a timezone (percent-encoded identifier)",
                mimeType=MIME_TYPE,
            )
        ]

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        logger.debug(f"Resource read: {uri}")
        text = read_datetime_resource(str(uri))
        return [ReadResourceContents(content=text, mime_type=MIME_TYPE)]

    return server
