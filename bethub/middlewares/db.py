"""Async-движок SQLModel и выдача сессий в обработчики FastAPI."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config.settings import DatabaseSettings, get_settings
from bethub import models  # noqa: F401  импортируем модели для регистрации метаданных

_engine: AsyncEngine | None = None


def create_session_maker(
    settings: DatabaseSettings,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(
        settings.dsn,
        echo=settings.echo,
        poolclass=NullPool,
    )
    maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, maker


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine, _ = create_session_maker(get_settings().database)
    return _engine


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Создаёт таблицы без Alembic (dev, тесты, первичный деплой)."""

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


__all__ = ["create_session_maker", "get_engine", "init_db"]
