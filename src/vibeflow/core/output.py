"""
Output and logging setup using Loguru and Rich.

Log records go to a rotating file through loguru; user-facing CLI messages go
through a shared Rich console.
"""

import sys
from pathlib import Path

from loguru import logger
from rich.console import Console

_console: Console | None = None


def setup_loguru(log_file: Path, level: str = "INFO", console: bool = False) -> None:
    """
    Configure loguru file logging, optionally mirrored to stderr.

    Args:
        log_file: Path to log file
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        console: Also emit records to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def get_console() -> Console:
    """Get or create the shared Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def log(message: str, level: str = "info", style: str | None = None) -> None:
    """Write a message to the log file AND show it on the console.

    Use this instead of print() for user-facing messages that should also be
    logged.
    """
    getattr(logger, level)(message)
    safe_print(message, style=style)
