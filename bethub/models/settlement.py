"""Заказы на пополнение, подтверждаемые callback-ом платёжного шлюза."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import Field

from .base import TimeStampedModel, money_field


class SettlementStatus:
    PENDING = 0
    SETTLED = 1


class SettlementOrder(TimeStampedModel, table=True):
    __tablename__ = "settlement_orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(max_length=64, unique=True, index=True)
    phone: str = Field(max_length=16, index=True)
    dial_code: Optional[str] = Field(default=None, max_length=8)
    amount: Decimal = money_field(default=None)
    status: int = Field(default=SettlementStatus.PENDING, index=True)
    pay_order_id: Optional[str] = Field(default=None, max_length=64)
    settled_at: Optional[datetime] = Field(default=None)

    @property
    def is_settled(self) -> bool:
        return self.status == SettlementStatus.SETTLED


__all__ = ["SettlementOrder", "SettlementStatus"]
