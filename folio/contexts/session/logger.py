"""
Session context logger.

Provides logging interface for the session context with automatic [session] prefix.
All session modules should import from this module, not from loguru directly.
"""

from typing import Sequence

from loguru import logger

CONTEXT_PREFIX = "[session]"


def _log_info(message: str) -> None:
    """Log info message with [session] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [session] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [session] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [session] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [session] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level session-specific logging helpers


def log_compile_start(target: str, root, generation: int) -> None:
    """Log start of a compile."""
    _log_debug(f"Compiling {target} document (root: {root}, cache generation {generation})")


def log_compile_result(
    succeeded: bool,
    page_count: int,
    diagnostics: Sequence,  # Diagnostic
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log compile result with diagnostics.

    Args:
        succeeded: Whether a document was produced
        page_count: Pages in the produced document (0 on failure)
        diagnostics: Mapped diagnostics, errors and warnings mixed
        elapsed_time: Time taken to compile
        verbose: Show more diagnostics (default: False)
    """
    errors = [d for d in diagnostics if d.is_error]
    warnings = [d for d in diagnostics if not d.is_error]

    if succeeded:
        _log_success(f"Compiled {page_count} pages: {len(warnings)} warnings ({elapsed_time:.2f}s)")
    else:
        _log_error(f"Compilation failed: {len(errors)} errors ({elapsed_time:.2f}s)")
        error_limit = 10 if verbose else 5
        for i, err in enumerate(errors[:error_limit], 1):
            _log_error(f"  Error {i}: {err.format()}")
        if len(errors) > error_limit:
            _log_error(f"  ... and {len(errors) - error_limit} more errors")

    if warnings:
        warning_limit = 10 if verbose else 3
        for i, warn in enumerate(warnings[:warning_limit], 1):
            _log_warning(f"  Warning {i}: {warn.format()}")
        if len(warnings) > warning_limit:
            _log_warning(f"  ... and {len(warnings) - warning_limit} more warnings")


def log_export(kind: str, size: int, elapsed_time: float) -> None:
    """Log a finished render or export."""
    _log_info(f"Exported {kind} ({size:,} bytes, {elapsed_time:.2f}s)")
