"""Logging setup for bookreviews.

Modules log through ``logging.getLogger(__name__)``; this module attaches a
Rich handler to the package logger once at startup.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "bookreviews"


def configure_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """Install a Rich handler on the package logger.

    Safe to call more than once; an existing Rich handler is replaced.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(numeric_level)

    # Keep SQLAlchemy's statement logging out of import output
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

    return logger
