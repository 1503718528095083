"""
Root logger configuration for the command line tools.

Standard output carries the progress lines, so log records only ever go to
standard error and, optionally, a rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List

from zwo_accessory.config.models import LoggingConfig


LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _handlers(config: LoggingConfig) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        try:
            handlers.append(RotatingFileHandler(
                config.file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            ))
        except OSError as e:
            print(f"Cannot open log file {config.file}: {e}", file=sys.stderr)
    return handlers


def setup_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Replace the root logger's handlers.

    Args:
        config: Logging configuration.
        verbose: Log at DEBUG regardless of the configured level; this is
            what makes TX/RX frame dumps visible.
    """
    level = logging.DEBUG if verbose else getattr(logging, config.level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    for handler in _handlers(config):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.debug(f"Logging at {logging.getLevelName(level)}, file={config.file}")
