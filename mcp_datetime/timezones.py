"""Timezone queries against the host timezone database."""

from datetime import datetime
from zoneinfo import ZoneInfo, available_timezones

import tzlocal
from loguru import logger


# Always offered, even when the host database cannot be enumerated
COMMON_TIMEZONES = (
    "UTC",
    "Europe/London",
    "Europe/Paris",
    "Europe/Berlin",
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
    "Asia/Tokyo",
    "Asia/Shanghai",
    "Asia/Kolkata",
    "Australia/Sydney",
    "Pacific/Auckland",
)

DEFAULT_TIMEZONE = "UTC"
INVALID_TIMEZONE = "Invalid timezone"


class InvalidTimezoneError(ValueError):
    """Raised when a timezone identifier is not known to the host database."""

    def __init__(self, timezone: str):
        self.timezone = timezone
        super().__init__(f"Invalid timezone: {timezone}")


def list_timezones() -> list[str]:
    """
    List every timezone the host knows about.

    Returns:
        Sorted identifiers, always including COMMON_TIMEZONES. Falls back to
        COMMON_TIMEZONES as-is when the host database cannot be enumerated.
    """
    try:
        timezones = set(available_timezones())
        timezones.update(COMMON_TIMEZONES)
        return sorted(timezones)
    except Exception as e:
        logger.error(f"Error enumerating host timezones: {e}")
        return list(COMMON_TIMEZONES)


def format_timezone_list(prefix: str = "Available timezones") -> str:
    """Render the timezone list as '<prefix> (<count>): a, b, c'."""
    timezones = list_timezones()
    return f"{prefix} ({len(timezones)}): {', '.join(timezones)}"


def is_valid_timezone(timezone: str | None) -> bool:
    """Check whether the host database accepts the identifier."""
    if not timezone:
        return False
    try:
        ZoneInfo(timezone)
        return True
    except Exception:
        return False


def current_timezone() -> str:
    """Return the host's default timezone, or UTC if it cannot be resolved."""
    try:
        timezone = tzlocal.get_localzone_name()
        if is_valid_timezone(timezone):
            return timezone
        logger.warning(f"System timezone {timezone} is not valid, falling back to {DEFAULT_TIMEZONE}")
        return DEFAULT_TIMEZONE
    except Exception as e:
        logger.error(f"Error resolving system timezone: {e}")
        return DEFAULT_TIMEZONE


def format_now(timezone: str) -> str:
    """
    Format the current instant in the given timezone.

    Args:
        timezone: IANA timezone identifier.

    Returns:
        ISO-8601 timestamp with milliseconds and UTC offset, for example
        '2024-01-01T12:00:00.000+00:00', or INVALID_TIMEZONE on failure.
    """
    try:
        return datetime.now(ZoneInfo(timezone)).isoformat(timespec="milliseconds")
    except Exception as e:
        logger.error(f"Error formatting time for timezone {timezone!r}: {e}")
        return INVALID_TIMEZONE
