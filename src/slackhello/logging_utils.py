"""Runtime logging helpers."""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger
from rich import get_console
from rich.logging import RichHandler

from slackhello.config import LogFormat

_TEXT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message} | {extra}"
_SDK_LOGGERS = ("slack_sdk", "slack_sdk.socket_mode", "slack_sdk.web", "aiohttp")
_CONFIGURED: tuple[str, LogFormat] | None = None


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (slack_sdk, aiohttp) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside of the logging module so loguru reports the real origin.
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _build_rich_handler() -> logging.Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(level: str = "INFO", log_format: LogFormat = "json", *, debug: bool = False) -> None:
    """Configure process-level logging once."""

    global _CONFIGURED
    level = level.upper()
    if debug:
        level = "DEBUG"
    if _CONFIGURED == (level, log_format):
        return

    logger.remove()
    if log_format == "json":
        logger.add(sys.stdout, level=level, serialize=True, backtrace=False, diagnose=False)
    elif log_format == "rich":
        logger.add(_build_rich_handler(), level=level, format="{message} {extra}", backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT, backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    sdk_level = logging.DEBUG if debug else logging.WARNING
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)
    _CONFIGURED = (level, log_format)
