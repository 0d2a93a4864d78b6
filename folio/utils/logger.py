"""
Generic loguru setup for FOLIO sessions.

Configures a detailed file sink plus a colorized console sink and writes a
provenance header. Context-specific wrappers live in contexts/{context}/logger.py.
Library modules only emit records; sinks are configured by entry points (the CLI).
"""

import sys
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"
)


def setup_logger(
    context_name: str,
    log_dir: Optional[Path] = None,
    extra_provenance: Optional[Dict[str, object]] = None,
    console_level: str = "INFO",
) -> Optional[Path]:
    """
    Configure loguru for a FOLIO entry point with provenance tracking.

    Args:
        context_name: Context identifier used for the log file name (e.g. "session")
        log_dir: Directory for this logging session; console-only when None
        extra_provenance: Additional key-value pairs for the provenance header
        console_level: Minimum level shown on stdout

    Returns:
        Path to the log file, or None when no log directory was given

    Example:
        from folio.utils.logger import setup_logger

        log_file = setup_logger(
            context_name="session",
            log_dir=Path("outs/logs/compile_20260101_120000"),
            extra_provenance={"Compiler": "mypkg.engine:Compiler"},
        )
    """
    logger.remove()

    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    log_file = None
    if log_dir is not None:
        log_dir.mkdir(exist_ok=True, parents=True)
        log_file = log_dir / f"{context_name}.log"
        logger.add(log_file, format=FILE_FORMAT, level="DEBUG")

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(extra_provenance)

    return log_file


def log_provenance(extra_context: Optional[Dict[str, object]] = None) -> None:
    """
    Log execution provenance (script, command, cwd, Python version) to the current logger.

    Args:
        extra_context: Additional key-value pairs to log
    """
    logger.debug("=" * 80)
    logger.debug(f"Script: {sys.argv[0]}")
    logger.debug(f"Command: {' '.join(sys.argv)}")
    logger.debug(f"Working directory: {Path.cwd()}")
    logger.debug(f"Python: {sys.version.split()[0]}")

    if extra_context:
        for key, value in extra_context.items():
            logger.debug(f"{key}: {value}")

    logger.debug("=" * 80)
