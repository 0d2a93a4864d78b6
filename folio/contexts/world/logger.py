"""
World context logger.

Provides logging interface for the world context with automatic [world] prefix.
All world modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[world]"


def _log_info(message: str) -> None:
    """Log info message with [world] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [world] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [world] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def _log_trace(message: str) -> None:
    """Log trace message with [world] prefix (per-file cache traffic)."""
    logger.trace(f"{CONTEXT_PREFIX} {message}")


# High-level world-specific logging helpers


def log_font_index(family_count: int, font_count: int, include_system_fonts: bool) -> None:
    """Log the result of a font search."""
    source = "system + custom" if include_system_fonts else "custom only"
    _log_info(f"Indexed {font_count} fonts in {family_count} families ({source})")


def log_cache_reset(generation: int, entry_count: int) -> None:
    """Log the start of a new cache generation."""
    _log_debug(f"Cache generation {generation} ({entry_count} cached files)")


def log_package_download(spec, url: str) -> None:
    """Log a package download."""
    _log_info(f"Downloading package {spec} from {url}")
