"""
subtitle_ai.logging - Centralized logging configuration.

Routes the ``subtitle_ai`` logger hierarchy through a Rich handler on stderr.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("subtitle_ai")

# HTTP client libraries are chatty at INFO
_NOISY_LOGGERS = ("urllib3", "huggingface_hub", "filelock")


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging for the subtitle_ai package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise INFO level
        console: Console to render log records on (default: stderr)
    """
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
