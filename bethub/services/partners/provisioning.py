"""Создание теневого аккаунта у партнёров после регистрации (best-effort)."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from bethub.errors import PartnerError

from .client import PartnerClient


@dataclass(slots=True, frozen=True)
class ProvisioningTarget:
    """Снимок нового аккаунта, достаточный для вызовов партнёров."""

    account_id: str
    username: str
    ip: str


@dataclass(slots=True)
class ProvisioningReport:
    game_platform: str = "skipped"
    partner: str = "skipped"


class ProvisioningService:
    def __init__(self, client: PartnerClient) -> None:
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client.game_platform_enabled or self._client.partner_enabled

    async def provision(self, target: ProvisioningTarget) -> ProvisioningReport:
        """Выполняет оба вызова; ошибки только логируются."""

        report = ProvisioningReport()
        if self._client.game_platform_enabled:
            try:
                response = await self._client.register_player(target.username, target.ip)
            except PartnerError as exc:
                report.game_platform = "failed"
                logger.warning("REGISTER на игровой платформе не удался для {account}: {error}", account=target.account_id, error=exc)
            else:
                report.game_platform = "ok"
                logger.info("REGISTER на игровой платформе: {response}", response=response)
        if self._client.partner_enabled:
            try:
                response = await self._client.create_member(target.account_id)
            except PartnerError as exc:
                report.partner = "failed"
                logger.warning("CreateMember не удался для {account}: {error}", account=target.account_id, error=exc)
            else:
                report.partner = "ok"
                logger.info("CreateMember для {account}: {response}", account=target.account_id, response=response)
        return report


__all__ = ["ProvisioningReport", "ProvisioningService", "ProvisioningTarget"]
