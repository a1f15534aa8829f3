"""Logging for the heartbeat package.

Records go to stderr through Rich and to ``heartbeat.log`` inside the
configured ``paths.log_dir``. The file is opened lazily, so a quiet run
leaves no file behind.

Example:
    >>> config = get_config()
    >>> setup_logging(config, level="INFO")
    >>> with log_duration(logger, "Analyzing relationship"):
    ...     analyzer.analyze(person)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler

from heartbeat.config import AppConfig

LOG_FILENAME = "heartbeat.log"

# Libraries that chatter at INFO/DEBUG
THIRD_PARTY_LOGGERS = ("PIL", "asyncio")

_stderr = Console(stderr=True)


def setup_logging(config: AppConfig, level: str | None = None) -> logging.Logger:
    """Attach console and file handlers to the ``heartbeat`` logger.

    Args:
        config: Supplies the log directory and, unless ``level`` is given,
            the level (``config.effective_log_level``).
        level: Level name overriding the configured one, e.g. from CLI flags.

    Returns:
        The package logger. Calling again replaces its handlers.
    """
    level_name = (level or config.effective_log_level).upper()
    threshold = logging.getLevelName(level_name)
    if not isinstance(threshold, int):
        threshold = logging.WARNING
    debugging = threshold <= logging.DEBUG

    package_logger = logging.getLogger("heartbeat")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(threshold)
    package_logger.propagate = False

    package_logger.addHandler(
        RichHandler(
            console=_stderr,
            show_time=False,
            show_path=debugging,
            rich_tracebacks=debugging,
            markup=False,
        )
    )

    log_path = config.paths.log_dir / LOG_FILENAME
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        package_logger.warning(f"Not logging to {log_path}: {e}")
    else:
        file_handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        package_logger.addHandler(file_handler)

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(max(threshold, logging.WARNING))

    package_logger.debug(f"Logging at {level_name} to stderr and {log_path}")
    return package_logger


@contextmanager
def log_duration(
    logger: logging.Logger, operation: str, level: int = logging.INFO
) -> Iterator[None]:
    """Log how long the wrapped block took, or how long it ran before failing."""
    started = time.perf_counter()
    logger.log(level, f"{operation} started")
    try:
        yield
    except Exception as e:
        logger.error(f"{operation} failed after {time.perf_counter() - started:.2f}s: {e}")
        raise
    logger.log(level, f"{operation} took {time.perf_counter() - started:.2f}s")
