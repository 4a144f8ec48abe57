"""Работа с заказами на пополнение."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from bethub.models import SettlementOrder, SettlementStatus
from bethub.models.base import utcnow


async def get_order(session: AsyncSession, order_id: str) -> Optional[SettlementOrder]:
    stmt = select(SettlementOrder).where(SettlementOrder.order_id == order_id)
    result = await session.exec(stmt)
    return result.one_or_none()


async def create_order(
    session: AsyncSession,
    *,
    order_id: str,
    phone: str,
    amount: Decimal,
    dial_code: str | None = None,
) -> SettlementOrder:
    order = SettlementOrder(order_id=order_id, phone=phone, amount=amount, dial_code=dial_code)
    session.add(order)
    await session.commit()
    await session.refresh(order)
    return order


async def mark_settled(
    session: AsyncSession,
    order_id: str,
    *,
    pay_order_id: str | None = None,
    settled_at: datetime | None = None,
) -> bool:
    """CAS pending -> settled. True только у того, кто выиграл переход."""

    moment = settled_at or utcnow()
    stmt = (
        update(SettlementOrder)
        .where(
            SettlementOrder.order_id == order_id,
            SettlementOrder.status == SettlementStatus.PENDING,
        )
        .values(
            status=SettlementStatus.SETTLED,
            pay_order_id=pay_order_id,
            settled_at=moment,
            updated_at=moment,
        )
    )
    result = await session.exec(stmt)  # type: ignore[call-overload]
    return (result.rowcount or 0) == 1


__all__ = ["create_order", "get_order", "mark_settled"]
