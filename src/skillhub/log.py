"""
Logging setup for skillhub.

Library modules only create ``logging.getLogger(__name__)`` loggers; the CLI
calls :func:`setup_logging` once to attach a console handler and a log file.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from skillhub.storage.paths import ensure_directory

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured_handlers: list[logging.Handler] = []


def setup_logging(
    level: str | int = "INFO",
    log_file: Path | None = None,
    console: Console | None = None,
) -> None:
    """
    Configure the ``skillhub`` logger hierarchy.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        level: Minimum level for the console handler.
        log_file: Optional file that receives every record at DEBUG and above.
        console: Rich console to render to (default: stderr).
    """
    logger = logging.getLogger("skillhub")
    for handler in _configured_handlers:
        logger.removeHandler(handler)
        handler.close()
    _configured_handlers.clear()

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    rich_handler.setLevel(level)
    _configured_handlers.append(rich_handler)

    if log_file is not None:
        try:
            ensure_directory(log_file.parent)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot open log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            _configured_handlers.append(file_handler)

    for handler in _configured_handlers:
        logger.addHandler(handler)
