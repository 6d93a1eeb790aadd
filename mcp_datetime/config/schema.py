"""Configuration schema using Pydantic."""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


def normalize_prefix(prefix: str | None) -> str:
    """Normalize an HTTP path prefix to '/segment' form, or '' for none."""
    if not prefix:
        return ""
    prefix = prefix.strip().strip("/")
    return f"/{prefix}" if prefix else ""


class Settings(BaseSettings):
    """Runtime settings for mcp-datetime."""
    transport: str = "stdio"  # "stdio" or "sse"
    host: str = "127.0.0.1"  # Default to localhost for security
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("port", "MCP_DATETIME_PORT", "PORT"),
    )
    prefix: str = ""  # HTTP path prefix for SSE routes, e.g. "/datetime"
    log_level: str = "INFO"
    shutdown_timeout: float = 5.0  # Seconds to wait for open SSE streams on shutdown

    @field_validator("prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        return normalize_prefix(value)

    @field_validator("transport")
    @classmethod
    def _check_transport(cls, value: str) -> str:
        value = value.lower()
        if value not in ("stdio", "sse"):
            raise ValueError(f"Unknown transport '{value}', expected 'stdio' or 'sse'")
        return value

    @property
    def is_sse(self) -> bool:
        return self.transport == "sse"

    class Config:
        env_prefix = "MCP_DATETIME_"
        populate_by_name = True
