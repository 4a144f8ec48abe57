"""Служебные таблицы, заполняемые при регистрации."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Field

from .base import TimeStampedModel


class PointListEntry(TimeStampedModel, table=True):
    """Строка point_list: контакт поддержки (telegram) для коллектора."""

    __tablename__ = "point_list"

    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(max_length=16, index=True)
    telegram: Optional[str] = Field(default=None, max_length=128)


class TurnoverSeed(TimeStampedModel, table=True):
    """Стартовая запись оборота нового аккаунта."""

    __tablename__ = "turn_over"

    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(max_length=16, index=True)
    code: str = Field(max_length=32, index=True)
    invite: str = Field(max_length=32, index=True)


__all__ = ["PointListEntry", "TurnoverSeed"]
