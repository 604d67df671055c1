"""Logging setup for the quotaprobe CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "quotaprobe"


def configure_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Route quotaprobe's loggers to stderr through rich.

    WARNING by default, DEBUG with ``verbose``, ERROR with ``quiet``.
    Calling it again replaces the handler instead of stacking another.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
