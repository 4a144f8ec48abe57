"""Утилита для первичной инициализации базы данных (без Alembic)."""

from __future__ import annotations

import asyncio

from loguru import logger
from sqlmodel import SQLModel

from bethub.logging_config import setup_logging
from bethub.middlewares.db import get_engine, init_db


async def _run() -> None:
    engine = get_engine()
    try:
        await init_db(engine)
    finally:
        await engine.dispose()
    logger.info("Таблицы созданы: {tables}", tables=", ".join(sorted(SQLModel.metadata.tables)))


def main() -> None:
    setup_logging(level="INFO")
    asyncio.run(_run())


if __name__ == "__main__":
    main()
