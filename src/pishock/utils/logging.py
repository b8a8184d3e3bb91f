"""Logging setup for the pishock command line.

Library users configure logging themselves; the SDK only emits through
module loggers under ``pishock``. The CLI calls :func:`setup_logging`
once per run.
"""

from __future__ import annotations

import logging
import sys

from pishock.config.settings import LoggingConfig

PACKAGE_LOGGER = "pishock"

# httpx logs every request at INFO, uvicorn its own lifecycle
_CHATTY_LOGGERS = ("httpx", "httpcore", "uvicorn", "uvicorn.error")

_HANDLER_NAME = "pishock-cli"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Attach console (and optional file) output to the ``pishock`` logger.

    Handlers installed by an earlier call are swapped out; handlers the
    host application added are left alone. Unless DEBUG is requested,
    the HTTP client and server libraries are held at WARNING.

    Returns:
        The configured ``pishock`` logger.
    """
    config = config or LoggingConfig()
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file, encoding="utf-8"))

    formatter = logging.Formatter(config.format)
    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    package_logger.setLevel(level)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    package_logger.debug(
        "Logging to stderr%s at %s",
        f" and {config.file}" if config.file else "",
        logging.getLevelName(level),
    )
    return package_logger
