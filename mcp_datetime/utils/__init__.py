"""Utility functions for mcp-datetime."""

from mcp_datetime.utils.logging import InterceptHandler, configure_logging, intercept_stdlib_loggers

__all__ = ["InterceptHandler", "configure_logging", "intercept_stdlib_loggers"]
