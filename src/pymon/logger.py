"""Logging setup for pymon."""

import logging
import logging.handlers
import os

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "pymon"


def _get_log_level(level_name: str, default_level: int = logging.WARNING) -> int:
    """Convert a level name such as 'DEBUG' to its logging constant."""
    level = logging.getLevelName(str(level_name).upper())
    if isinstance(level, int):
        return level
    logging.getLogger(ROOT_LOGGER_NAME).warning(
        "Invalid log level name '%s'. Using %s.", level_name, logging.getLevelName(default_level)
    )
    return default_level


def setup_logger(
    console_level_name: str = "WARNING",
    log_file_path: str | None = None,
    file_level_name: str = "DEBUG",
    console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> logging.Logger:
    """
    Configure the package logger.

    Every module logs through `logging.getLogger(__name__)`, so handlers
    attached here to the "pymon" logger see all of them. Calling this again
    replaces the previous handlers.

    Args:
        console_level_name: Level for the stderr handler.
        log_file_path: Optional rotating log file.
        file_level_name: Level for the file handler.
        console: Attach a stderr handler at all. The TUI turns this off.
        max_bytes: Size at which the log file rotates.
        backup_count: Number of rotated files to keep.
        log_format: Format string for both handlers.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)
    levels: list[int] = []

    if console:
        console_level = _get_log_level(console_level_name)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
        levels.append(console_level)

    if log_file_path:
        try:
            log_dir = os.path.dirname(log_file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            logger.error("Failed to set up file logging to %s: %s", log_file_path, e)
        else:
            file_level = _get_log_level(file_level_name, logging.DEBUG)
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            levels.append(file_level)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.setLevel(min(levels) if levels else logging.WARNING)
    return logger
