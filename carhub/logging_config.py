"""
Centralized logging configuration using loguru.
"""
import os
import sys
import logging
from loguru import logger
from typing import Optional


# Default format for standard output
DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Third-party loggers that are too chatty at INFO
MODULE_LOG_LEVELS = {
    "uvicorn": "WARNING",
    "uvicorn.access": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "asyncio": "WARNING",
    "urllib3": "WARNING",
}


class InterceptHandler(logging.Handler):
    """
    Intercepts standard library logging and routes it through loguru.
    Uvicorn and SQLAlchemy log through the standard library.
    """
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure loguru logger with the specified settings.

    Args:
        log_level: The log level to use. Falls back to the LOG_LEVEL
                   env var, then INFO.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    logger.remove()
    logger.add(
        sys.stderr,
        format=DEFAULT_FORMAT,
        level=log_level.upper(),
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = os.getenv("LOG_FILE")
    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=DEFAULT_FORMAT,
            level=log_level.upper(),
            enqueue=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for module, level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module).setLevel(getattr(logging, level))


__all__ = ["logger", "configure_logging"]
