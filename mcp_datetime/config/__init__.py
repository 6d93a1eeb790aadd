"""Configuration module for mcp-datetime."""

from mcp_datetime.config.schema import Settings, normalize_prefix

__all__ = ["Settings", "normalize_prefix"]
