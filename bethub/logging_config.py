"""Настройка loguru для продакшена.

uvicorn, SQLAlchemy и aiohttp пишут в стандартный ``logging``; их записи
перехватываются и уходят в тот же sink loguru.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(json: bool = False, level: str = "DEBUG") -> None:
    logger.remove()
    fmt = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"
    if json:
        fmt = (
            "{{\"time\":\"{time:YYYY-MM-DDTHH:mm:ss}\","
            "\"level\":\"{level}\","
            "\"message\":{message},"
            "\"extra\":{extra}}}"
        )
    logger.add(
        sys.stdout,
        format=fmt,
        level=level,
        colorize=not json,
        backtrace=False,
        enqueue=True,
    )
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]


__all__ = ["InterceptHandler", "setup_logging"]
