"""Logging configuration for branchflow."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(f"branchflow.{name}")


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging for branchflow.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logger = logging.getLogger("branchflow")
    logger.setLevel(getattr(logging, level.upper()))

    # Replace handlers so repeated CLI invocations in one process don't stack them
    logger.handlers.clear()

    # Diagnostics go to stderr so command output stays clean
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    handler.setLevel(getattr(logging, level.upper()))
    logger.addHandler(handler)

    logger.propagate = False
