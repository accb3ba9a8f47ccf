"""Logging configuration for pebble-tree."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False) -> None:
    """Route loguru to stderr; debug output only when verbose."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
