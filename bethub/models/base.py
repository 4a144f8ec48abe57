"""Базовые примеси и типы колонок для SQLModel моделей."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Numeric
from sqlmodel import Column, Field, SQLModel

MONEY_PRECISION = 18
MONEY_SCALE = 2


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def money_field(default: Decimal | None = Decimal("0"), **kwargs: Any) -> Any:
    """Денежная колонка NUMERIC(18, 2); без ``default`` поле обязательное."""

    column = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)
    if default is None:
        return Field(sa_column=column, **kwargs)
    return Field(default=default, sa_column=column, **kwargs)


class TimeStampedModel(SQLModel, table=False):
    """Добавляет created_at / updated_at."""

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


__all__ = ["MONEY_PRECISION", "MONEY_SCALE", "TimeStampedModel", "money_field", "utcnow"]
