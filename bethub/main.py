"""Entry point for BetHub API."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import get_settings
from .logging_config import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(json=settings.server.json_logs, level="INFO" if settings.is_production else "DEBUG")
    logger.info("Запуск uvicorn на {host}:{port}", host=settings.server.host, port=settings.server.port)
    uvicorn.run(
        "bethub.web.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
