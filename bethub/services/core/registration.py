"""Регистрация аккаунта: уникальность, реферальная цепочка, уровни.

Порядок шагов важен: все проверки выполняются до побочных эффектов, аккаунт и
его служебные строки пишутся одной транзакцией, а вызовы партнёров уходят в
фоновый пул и никак не влияют на ответ клиенту.
"""

from __future__ import annotations

import asyncio
import secrets
from dataclasses import dataclass
from typing import Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bethub.errors import (
    BetHubError,
    DuplicatePhone,
    IdentityExhausted,
    InternalError,
    InvalidReferrer,
    TooManyAccountsFromOrigin,
)
from bethub.models import Account, PointListEntry, RoleLevel, TurnoverSeed
from bethub.repositories import (
    count_accounts_by_ip,
    count_referees,
    get_account_by_phone,
    get_account_by_ref_code,
    identity_code_exists,
    raise_tier,
)
from bethub.services.partners import ProvisioningService, ProvisioningTarget
from bethub.utils.locks import KeyedLock
from bethub.utils.security import hash_password, issue_session_token, token_digest
from bethub.utils.tasks import BackgroundRunner
from config.settings import RegistrationSettings, SecuritySettings


class RegistrationRequest(BaseModel):
    """Тело запроса регистрации (имена полей совпадают с формой клиента)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    phone: str = Field(..., alias="phoneNumber", pattern=r"^\d{10}$")
    password: str = Field(..., alias="pwd", min_length=6, max_length=72)
    referral_code: str = Field(..., alias="invitecode", min_length=1, max_length=32)
    dial_code: str = Field(..., alias="dialCode", min_length=1, max_length=8)
    allowed_tabs: str | None = Field(None, max_length=255)

    @property
    def is_privileged(self) -> bool:
        return bool(self.allowed_tabs)


@dataclass(slots=True)
class RegistrationResult:
    account: Account
    token: str
    token_digest: str
    provisioning: str


def compute_tier(referee_count: int, thresholds: Sequence[int]) -> int:
    """Число подряд выполненных порогов лестницы (0..len(thresholds))."""

    tier = 0
    for threshold in thresholds:
        if referee_count < threshold:
            break
        tier += 1
    return tier


def random_digits(length: int) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


class RegistrationService:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        settings: RegistrationSettings,
        security: SecuritySettings,
        *,
        provisioning: ProvisioningService | None = None,
        runner: BackgroundRunner | None = None,
        referrer_locks: KeyedLock | None = None,
    ) -> None:
        self._session_maker = session_maker
        self._settings = settings
        self._security = security
        self._provisioning = provisioning
        self._runner = runner
        self._locks = referrer_locks or KeyedLock()

    async def register(self, request: RegistrationRequest, origin_ip: str | None) -> RegistrationResult:
        try:
            return await self._register(request, origin_ip)
        except BetHubError:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Ошибка БД при регистрации {phone}: {error}", phone=request.phone, error=exc)
            raise InternalError() from exc

    async def _register(self, request: RegistrationRequest, origin_ip: str | None) -> RegistrationResult:
        async with self._session_maker() as session:
            referrer = await self._check_preconditions(session, request, origin_ip)

        password_hash = await asyncio.to_thread(hash_password, request.password, self._settings.bcrypt_rounds)
        attribution = self._resolve_attribution(referrer)

        async with self._locks.acquire(referrer.referral_code):
            for attempt in range(1, self._settings.identity_max_attempts + 1):
                identity_code = random_digits(self._settings.identity_digits)
                async with self._session_maker() as session:
                    if await identity_code_exists(session, identity_code):
                        logger.debug("Коллизия identity_code {code} (попытка {n})", code=identity_code, n=attempt)
                        continue
                    account, token = self._build_account(request, identity_code, password_hash, attribution, origin_ip)
                    try:
                        await self._persist(session, account, referrer)
                    except IntegrityError:
                        await session.rollback()
                        if await get_account_by_phone(session, request.phone, request.dial_code):
                            raise DuplicatePhone()
                        logger.debug("Конфликт уникальности при вставке {code}, повтор", code=identity_code)
                        continue
                    break
            else:
                logger.error("Не удалось подобрать identity_code за {n} попыток", n=self._settings.identity_max_attempts)
                raise IdentityExhausted()

        logger.info(
            "Зарегистрирован аккаунт {identity} по коду {ref} (ctv={ctv})",
            identity=account.identity_code,
            ref=referrer.referral_code,
            ctv=attribution,
        )
        provisioning = self._schedule_provisioning(account)
        return RegistrationResult(
            account=account,
            token=token,
            token_digest=account.token_digest or "",
            provisioning=provisioning,
        )

    async def _check_preconditions(
        self,
        session: AsyncSession,
        request: RegistrationRequest,
        origin_ip: str | None,
    ) -> Account:
        if await get_account_by_phone(session, request.phone, request.dial_code):
            raise DuplicatePhone()
        referrer = await get_account_by_ref_code(session, request.referral_code)
        if referrer is None:
            raise InvalidReferrer()
        if not request.is_privileged and origin_ip:
            owned = await count_accounts_by_ip(session, origin_ip)
            if owned > self._settings.max_accounts_per_ip:
                logger.warning("С адреса {ip} уже {count} аккаунтов", ip=origin_ip, count=owned)
                raise TooManyAccountsFromOrigin()
        return referrer

    def _resolve_attribution(self, referrer: Account) -> str | None:
        # схлопывание цепочки на первом предке с tier >= flatten_tier
        if referrer.tier_level >= self._settings.flatten_tier:
            return referrer.phone
        return referrer.attribution

    def _build_account(
        self,
        request: RegistrationRequest,
        identity_code: str,
        password_hash: str,
        attribution: str | None,
        origin_ip: str | None,
    ) -> tuple[Account, str]:
        privileged = request.is_privileged
        account = Account(
            identity_code=identity_code,
            phone=request.phone,
            dial_code=request.dial_code,
            display_name="Admin" if privileged else f"Member{random_digits(5)}",
            referral_code=f"{random_digits(5)}{identity_code}",
            invited_by=request.referral_code,
            attribution=attribution,
            role_level=RoleLevel.PRIVILEGED if privileged else RoleLevel.MEMBER,
            allowed_tabs=request.allowed_tabs if privileged else None,
            balance=self._settings.starting_balance,
            bonus_balance=self._settings.bonus_on_register,
            password_hash=password_hash,
            ip_address=origin_ip,
        )
        token = issue_session_token(
            self._security,
            identity_code,
            claims={"phone": request.phone, "code": account.referral_code},
        )
        account.token_digest = token_digest(token)
        return account, token

    async def _persist(self, session: AsyncSession, account: Account, referrer: Account) -> None:
        session.add(account)
        session.add(PointListEntry(phone=account.phone))
        session.add(TurnoverSeed(phone=account.phone, code=account.referral_code, invite=account.invited_by))
        await session.flush()
        if not referrer.is_privileged:
            await self.recompute_tier(session, referrer.referral_code)
        await session.commit()
        await session.refresh(account)

    async def recompute_tier(self, session: AsyncSession, referral_code: str) -> int:
        """Пересчитывает уровень реферера; повторный вызов с тем же счётчиком ничего не меняет."""

        referees = await count_referees(session, referral_code)
        tier = compute_tier(referees, self._settings.tier_thresholds)
        if tier and await raise_tier(session, referral_code, tier):
            logger.info("Уровень {code} поднят до {tier} ({count} рефералов)", code=referral_code, tier=tier, count=referees)
        return tier

    def _schedule_provisioning(self, account: Account) -> str:
        if self._provisioning is None or self._runner is None or not self._provisioning.enabled:
            return "skipped"
        target = ProvisioningTarget(
            account_id=account.phone,
            username=account.display_name,
            ip=account.ip_address or "",
        )
        provisioning = self._provisioning
        submitted = self._runner.submit(
            f"provision:{account.identity_code}",
            lambda: provisioning.provision(target),
        )
        return "scheduled" if submitted else "dropped"


__all__ = [
    "RegistrationRequest",
    "RegistrationResult",
    "RegistrationService",
    "compute_tier",
    "random_digits",
]
