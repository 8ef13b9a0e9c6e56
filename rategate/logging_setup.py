from __future__ import annotations

import logging
import sys

from loguru import logger


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[channel]}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib records (rate_limiter, eviction_sweeper, ...) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.bind(channel=record.name).opt(exception=record.exc_info).log(level, record.getMessage())


def setup_logging(*, level: str) -> None:
    # TRACE exists only in loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0 if level == "TRACE" else level, force=True)
    # access log is per-request noise outside debugging
    logging.getLogger("aiohttp.access").setLevel(logging.DEBUG if level in ("DEBUG", "TRACE") else logging.WARNING)

    logger.remove()
    logger.configure(extra={"channel": "rategate"})
    logger.add(sys.stdout, level=level, format=LOG_FORMAT, backtrace=True, diagnose=False)

    logger.info("Logging configured at {}", level)
