"""mcp-datetime - current date, time and timezone information over MCP."""

__version__ = "0.2.0"
__logo__ = "🕒"

SERVER_NAME = "mcp-datetime"
