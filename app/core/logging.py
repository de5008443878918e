# app/core/logging.py
import logging
import sys
from typing import Optional, TextIO

import colorlog

from app.core.config import Settings, get_settings

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"
DATE_FORMAT = "%H:%M:%S"
LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def resolve_level(settings: Settings) -> int:
    """LOG_LEVEL by name when it is a known level, otherwise DEBUG/INFO from the DEBUG flag."""
    if settings.LOG_LEVEL:
        level = logging.getLevelName(settings.LOG_LEVEL.strip().upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if settings.DEBUG else logging.INFO


def configure_logging(settings: Optional[Settings] = None, *, stream: Optional[TextIO] = None) -> int:
    """
    Route every logger through one colorlog handler on the root logger.
    Colors are dropped when LOG_COLOR is off or the stream is not a terminal.
    Returns the effective level.
    """
    settings = settings or get_settings()
    level = resolve_level(settings)
    stream = stream or sys.stdout

    handler = colorlog.StreamHandler(stream)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            LOG_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors=LEVEL_COLORS,
            stream=stream,
            no_color=not settings.LOG_COLOR,
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in SERVER_LOGGERS:
        logging.getLogger(name).setLevel(level)

    # Driver and client chatter never drops below WARNING, even in DEBUG mode
    for name in settings.quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug(
        "Logging configured level=%s color=%s quiet=%s",
        logging.getLevelName(level), settings.LOG_COLOR, settings.quiet_loggers,
    )
    return level
