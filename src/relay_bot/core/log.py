"""Logging setup: module loggers render through rich on the daemon console."""
import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(name)s: %(message)s"


def setup_logging(level: str = "INFO", console: Console | None = None) -> None:
    """
    Configure the root logger with a RichHandler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console: Console to render on, shared with the daemon's status output
    """
    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Telethon is chatty at INFO
    logging.getLogger("telethon").setLevel(max(logging.WARNING, root.level))
