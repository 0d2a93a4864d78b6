"""Timestamp helpers for log directories and event records."""

from datetime import datetime, timezone


def now() -> str:
    """Local timestamp safe for directory names, e.g. 20260101_120000."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def format_elapsed(seconds: float) -> str:
    """
    Format an elapsed duration compactly.

    Examples:
        format_elapsed(0.0421)  # "42ms"
        format_elapsed(3.5)     # "3.50s"
        format_elapsed(125)     # "2m 5s"
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes}m {rest}s"
