"""Инфраструктура запросов: сессии БД и обработчики ошибок."""

from .db import create_session_maker, get_engine, init_db
from .errors import register_error_handlers

__all__ = [
    "create_session_maker",
    "get_engine",
    "init_db",
    "register_error_handlers",
]
