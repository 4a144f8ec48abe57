"""Функции для работы с таблицей аккаунтов."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, select

from bethub.models import Account


async def get_account_by_phone(session: AsyncSession, phone: str, dial_code: str) -> Optional[Account]:
    stmt = select(Account).where(Account.phone == phone, Account.dial_code == dial_code)
    result = await session.exec(stmt)
    return result.one_or_none()


async def get_account_by_ref_code(session: AsyncSession, code: str) -> Optional[Account]:
    stmt = select(Account).where(Account.referral_code == code)
    result = await session.exec(stmt)
    return result.one_or_none()


async def get_account_by_token_digest(session: AsyncSession, digest: str) -> Optional[Account]:
    stmt = select(Account).where(Account.token_digest == digest)
    result = await session.exec(stmt)
    return result.first()


async def identity_code_exists(session: AsyncSession, identity_code: str) -> bool:
    stmt = select(Account.id).where(Account.identity_code == identity_code)
    return (await session.exec(stmt)).first() is not None


async def count_accounts_by_ip(session: AsyncSession, ip_address: str) -> int:
    stmt = select(func.count(Account.id)).where(Account.ip_address == ip_address)
    return int((await session.exec(stmt)).one() or 0)


async def count_referees(session: AsyncSession, referral_code: str) -> int:
    stmt = select(func.count(Account.id)).where(Account.invited_by == referral_code)
    return int((await session.exec(stmt)).one() or 0)


async def raise_tier(session: AsyncSession, referral_code: str, tier: int) -> int:
    """Поднимает уровень, но никогда не опускает его (условный UPDATE)."""

    stmt = (
        update(Account)
        .where(Account.referral_code == referral_code, Account.tier_level < tier)
        .values(tier_level=tier)
    )
    result = await session.exec(stmt)  # type: ignore[call-overload]
    return result.rowcount or 0


async def find_owner_ids(session: AsyncSession, phone: str, dial_code: str | None = None) -> list[int]:
    """Id аккаунтов, подходящих под телефон заказа (и код страны, если он известен)."""

    stmt = select(Account.id).where(Account.phone == phone)
    if dial_code:
        stmt = stmt.where(Account.dial_code == dial_code)
    return list((await session.exec(stmt)).all())


async def credit_balance(session: AsyncSession, account_id: int, amount: Decimal) -> int:
    """Атомарное начисление: ``balance = balance + amount`` без чтения баланса."""

    stmt = (
        update(Account)
        .where(Account.id == account_id)
        .values(
            balance=Account.balance + amount,
            total_deposit=Account.total_deposit + amount,
        )
    )
    result = await session.exec(stmt)  # type: ignore[call-overload]
    return result.rowcount or 0


__all__ = [
    "count_accounts_by_ip",
    "count_referees",
    "credit_balance",
    "find_owner_ids",
    "get_account_by_phone",
    "get_account_by_ref_code",
    "get_account_by_token_digest",
    "identity_code_exists",
    "raise_tier",
]
