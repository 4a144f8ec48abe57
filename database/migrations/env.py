"""Alembic environment для BetHub.

Миграции запускаются синхронным драйвером: async-DSN приложения переводится
в синхронный эквивалент (aiosqlite -> sqlite, asyncpg -> psycopg2).
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

from config.settings import get_settings
from bethub import models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _sync_dsn(dsn: str) -> str:
    return dsn.replace("+aiosqlite", "").replace("+asyncpg", "+psycopg2")


settings = get_settings()
sync_dsn = _sync_dsn(settings.database.dsn)
config.set_main_option("sqlalchemy.url", sync_dsn)

target_metadata = SQLModel.metadata
# SQLite не умеет ALTER COLUMN, поэтому там миграции идут через batch-режим
render_as_batch = sync_dsn.startswith("sqlite")


def run_migrations_offline() -> None:
    context.configure(
        url=sync_dsn,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=render_as_batch,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section) or {},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
