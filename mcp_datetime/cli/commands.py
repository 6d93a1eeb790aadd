"""CLI commands for mcp-datetime."""

import asyncio
import signal

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from mcp_datetime import __logo__, __version__

app = typer.Typer(
    name="mcp-datetime",
    help=f"{__logo__} mcp-datetime - date, time and timezone information over MCP",
)

# stdout is the protocol channel in stdio mode
console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} mcp-datetime v{__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    sse: bool = typer.Option(False, "--sse", help="Serve over HTTP/SSE instead of stdio"),
    port: int = typer.Option(None, "--port", "-p", help="Listening port in SSE mode (default: $PORT or 3000)"),
    host: str = typer.Option(None, "--host", help="Listening address in SSE mode"),
    prefix: str = typer.Option(None, "--prefix", help="Path prefix for the SSE routes, e.g. /datetime"),
    log_level: str = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """Run the MCP DateTime server (stdio by default)."""
    if ctx.invoked_subcommand is not None:
        return

    from pydantic import ValidationError

    from mcp_datetime.config.schema import Settings
    from mcp_datetime.utils.logging import configure_logging

    overrides = {
        "transport": "sse" if sse else None,
        "port": port,
        "host": host,
        "prefix": prefix,
        "log_level": log_level,
    }
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    configure_logging(settings.log_level)
    raise typer.Exit(serve(settings))


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def serve(settings) -> int:
    """Build the server, attach the selected transport and run it. Returns the exit code."""
    from mcp_datetime.server import build_server
    from mcp_datetime.transport import SSETransport, StdioTransport, TransportError

    server = build_server()

    if settings.is_sse:
        transport = SSETransport(
            server,
            host=settings.host,
            port=settings.port,
            prefix=settings.prefix,
            shutdown_timeout=settings.shutdown_timeout,
            log_level=settings.log_level,
        )
    else:
        transport = StdioTransport(server)

    logger.info(f"Starting MCP DateTime server ({transport.name})...")

    async def run():
        async with transport:
            await transport.serve()

    # uvicorn re-raises SIGTERM after its own shutdown; stop the same way as Ctrl+C
    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except TransportError as e:
        logger.error(f"Error starting MCP DateTime server: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unhandled error: {e}")
        return 1
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    logger.info("MCP DateTime server stopped")
    return 0


@app.command()
def timezones(
    show_all: bool = typer.Option(False, "--all", "-a", help="Show every known timezone"),
):
    """Show the current time in the common (or all) timezones."""
    from mcp_datetime.timezones import (
        COMMON_TIMEZONES,
        current_timezone,
        format_now,
        list_timezones,
    )

    names = list_timezones() if show_all else list(COMMON_TIMEZONES)
    local = current_timezone()

    table = Table(title=f"{__logo__} Current time ({len(names)} timezones)")
    table.add_column("Timezone", style="cyan")
    table.add_column("Current time")

    for name in names:
        label = f"{name} [green](local)[/green]" if name == local else name
        table.add_row(label, format_now(name))

    Console().print(table)


if __name__ == "__main__":
    app()
