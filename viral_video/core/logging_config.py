"""Logging for kit generation and rendering, tagged with the current run."""

import sys
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

# Every record carries these keys; get_logger and stage binds fill them in
RUN_CONTEXT_DEFAULTS = {"topic": "-", "kit": "-", "stage": "-"}

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[stage]}</magenta> | <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | topic={extra[topic]} kit={extra[kit]} "
    "stage={extra[stage]} | {name}:{function}:{line} | {message}"
)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    **run_context: Any,
) -> None:
    """
    Route logs to stderr (stdout carries the CLI's result lines) and,
    optionally, to a rotating file.

    Args:
        log_level: Logging level; DEBUG also prints every ffmpeg command line
        log_file: Rotating log file, zipped on rotation
        rotation: Log rotation size
        retention: Log retention period
        **run_context: Defaults for the topic/kit/stage tags of this run
    """
    logger.remove()
    logger.configure(extra={**RUN_CONTEXT_DEFAULTS, **run_context})

    level = log_level.upper()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
        )


def get_logger(name: str, **context: Any) -> Any:
    """Logger for ``name`` tagged with run context such as ``topic`` or ``kit``."""
    return logger.bind(name=name, **context)


setup_logging()
