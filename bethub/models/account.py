"""SQLModel модель игрового аккаунта."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import TimeStampedModel, money_field


class AccountStatus:
    LOCKED = 0
    ACTIVE = 1


class RoleLevel:
    MEMBER = 0
    PRIVILEGED = 1


class Account(TimeStampedModel, table=True):
    """Основная запись пользователя BetHub.

    ``referral_code`` выдаётся один раз и больше не меняется; ``invited_by``
    указывает на код пригласившего, ``attribution`` на телефон коллектора (ctv).
    Баланс меняется только относительным UPDATE, см. ``account_repo.credit_balance``.
    """

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("phone", "dial_code", name="uq_accounts_phone_dial"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    identity_code: str = Field(max_length=16, unique=True, index=True)
    phone: str = Field(max_length=16, index=True)
    dial_code: str = Field(max_length=8)
    display_name: str = Field(max_length=64)
    referral_code: str = Field(max_length=32, unique=True, index=True)
    invited_by: str = Field(max_length=32, index=True)
    attribution: Optional[str] = Field(default=None, max_length=32, index=True)
    tier_level: int = Field(default=0, ge=0)
    role_level: int = Field(default=RoleLevel.MEMBER)
    allowed_tabs: Optional[str] = Field(default=None, max_length=255)
    balance: Decimal = money_field()
    bonus_balance: Decimal = money_field()
    total_deposit: Decimal = money_field()
    status: int = Field(default=AccountStatus.ACTIVE, index=True)
    password_hash: str = Field(max_length=128)
    token_digest: Optional[str] = Field(default=None, max_length=32, index=True)
    ip_address: Optional[str] = Field(default=None, max_length=64, index=True)

    @property
    def is_privileged(self) -> bool:
        return self.role_level >= RoleLevel.PRIVILEGED


__all__ = ["Account", "AccountStatus", "RoleLevel"]
