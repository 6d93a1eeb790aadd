"""CLI module for mcp-datetime."""
