"""Общие фикстуры: тестовая SQLite-БД, собранный контекст, фабрики записей."""

from __future__ import annotations

import itertools
from decimal import Decimal
from typing import Any

import pytest
from sqlmodel import select

from bethub.context import build_context
from bethub.middlewares.db import init_db
from bethub.models import Account, RoleLevel, SettlementOrder
from bethub.repositories import create_order
from bethub.services.core.reconciliation import CALLBACK_FIELDS
from bethub.services.core.signature import canonical_params, sign
from config.settings import (
    AppSettings,
    DatabaseSettings,
    MerchantSettings,
    RegistrationSettings,
    SecuritySettings,
    TaskSettings,
)

MERCHANT_SECRET = "merchant-secret-for-tests"
JWT_SECRET = "jwt-secret-for-tests-0123456789abcdef"

_seq = itertools.count(1)


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        database=DatabaseSettings(dsn=f"sqlite+aiosqlite:///{tmp_path / 'bethub-test.db'}"),
        merchant=MerchantSettings(signing_secret=MERCHANT_SECRET),
        security=SecuritySettings(jwt_secret=JWT_SECRET),
        registration=RegistrationSettings(bcrypt_rounds=4),
        tasks=TaskSettings(workers=2, queue_size=50),
    )


@pytest.fixture
async def context(settings):
    ctx = build_context(settings)
    await init_db(ctx.engine)
    await ctx.runner.start()
    yield ctx
    await ctx.shutdown()


@pytest.fixture
def session_maker(context):
    return context.session_maker


@pytest.fixture
def make_account(session_maker):
    async def factory(**overrides: Any) -> Account:
        n = next(_seq)
        data: dict[str, Any] = {
            "identity_code": f"{9000000 + n}",
            "phone": f"{9100000000 + n}",
            "dial_code": "+91",
            "display_name": f"Member{n:05d}",
            "referral_code": f"REF{n:06d}",
            "invited_by": "ROOT",
            "attribution": None,
            "tier_level": 0,
            "role_level": RoleLevel.MEMBER,
            "balance": Decimal("0"),
            "password_hash": "not-a-real-hash",
        }
        data.update(overrides)
        account = Account(**data)
        async with session_maker() as session:
            session.add(account)
            await session.commit()
            await session.refresh(account)
        return account

    return factory


@pytest.fixture
def make_order(session_maker):
    async def factory(order_id: str, phone: str, amount: str = "500", dial_code: str | None = None) -> SettlementOrder:
        async with session_maker() as session:
            return await create_order(
                session,
                order_id=order_id,
                phone=phone,
                amount=Decimal(amount),
                dial_code=dial_code,
            )

    return factory


@pytest.fixture
def load_account(session_maker):
    async def loader(phone: str, dial_code: str = "+91") -> Account | None:
        async with session_maker() as session:
            stmt = select(Account).where(Account.phone == phone, Account.dial_code == dial_code)
            return (await session.exec(stmt)).one_or_none()

    return loader


def signed_callback(secret: str = MERCHANT_SECRET, **fields: Any) -> dict[str, Any]:
    """Callback шлюза с корректной подписью."""

    payload: dict[str, Any] = {
        "mchOrderNo": "ORD-1",
        "income": "500",
        "mchId": "20000",
        "appId": "app-1",
        "productId": "8000",
        "payOrderId": "P0001",
        "amount": "50000",
        "status": "2",
        "channelOrderNo": "",
        "param1": "",
        "param2": "",
        "paySuccTime": "1733040000000",
        "backType": "2",
    }
    payload.update(fields)
    payload["sign"] = sign(canonical_params(payload, CALLBACK_FIELDS), secret)
    return payload
