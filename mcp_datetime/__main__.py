"""Entry point for running mcp-datetime as a module: python -m mcp_datetime."""

from mcp_datetime.cli.commands import app

if __name__ == "__main__":
    app()
