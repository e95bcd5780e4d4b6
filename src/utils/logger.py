"""Logging configuration using Loguru."""

import sys
from pathlib import Path

from loguru import logger

from src.config import LoggingConfig

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """
    Replace Loguru's sinks with a colorized stderr sink and, optionally, a
    rotating file sink under `log_dir` (JSON lines when `serialize`).

    Context bound at call sites with `logger.bind(...)` ends up in the
    serialized records.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_CONSOLE_FORMAT, colorize=True)

    if not log_to_file:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path / "cme_{time:YYYY-MM-DD}.log",
        level=level.upper(),
        format=_FILE_FORMAT,
        rotation=file_rotation,
        retention=file_retention,
        compression=compression,
        serialize=serialize,
        enqueue=True,
    )


def setup_logging_from_config(config: LoggingConfig) -> None:
    """Apply a `LoggingConfig` section."""
    setup_logging(
        level=config.level,
        log_to_file=config.log_to_file,
        log_dir=config.log_dir,
        file_rotation=config.file_rotation,
        file_retention=config.file_retention,
        compression=config.compression,
        serialize=config.serialize,
    )


def get_logger(name: str):
    """Get a logger instance bound to a module name."""
    return logger.bind(module=name)
