"""Сборка сервисов BetHub из настроек.

Каждый сервис получает свой раздел настроек явно, поэтому тесты собирают
контекст с тестовой БД и фиктивными секретами без переменных окружения.
"""

from __future__ import annotations

from dataclasses import dataclass

from aiogram import Bot
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config.settings import AppSettings, get_settings
from .middlewares.db import create_session_maker
from .services.core.notifier import OpsNotifier
from .services.core.reconciliation import ReconciliationService
from .services.core.registration import RegistrationService
from .services.core.signature import SignatureEngine
from .services.partners import PartnerClient, ProvisioningService
from .utils.tasks import BackgroundRunner


@dataclass
class AppContext:
    settings: AppSettings
    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]
    runner: BackgroundRunner
    notifier: OpsNotifier
    partner_client: PartnerClient
    provisioning: ProvisioningService
    registration: RegistrationService
    reconciliation: ReconciliationService

    async def startup(self) -> None:
        logger.info("BetHub стартует в окружении {env}", env=self.settings.environment)
        await self.runner.start()

    async def shutdown(self) -> None:
        await self.runner.stop()
        await self.notifier.close()
        await self.engine.dispose()
        logger.info("BetHub корректно остановлен")


def build_context(settings: AppSettings | None = None, *, bot: Bot | None = None) -> AppContext:
    settings = settings or get_settings()
    engine, session_maker = create_session_maker(settings.database)
    runner = BackgroundRunner(workers=settings.tasks.workers, queue_size=settings.tasks.queue_size)
    notifier = OpsNotifier(settings.notifications, bot=bot)
    partner_client = PartnerClient(settings.game_platform, settings.partner)
    provisioning = ProvisioningService(partner_client)
    registration = RegistrationService(
        session_maker,
        settings.registration,
        settings.security,
        provisioning=provisioning,
        runner=runner,
    )
    signer = SignatureEngine(
        settings.merchant.signing_secret.get_secret_value(),
        secret_field=settings.merchant.secret_field,
    )
    reconciliation = ReconciliationService(
        session_maker,
        signer,
        notifier=notifier,
        runner=runner,
    )
    return AppContext(
        settings=settings,
        engine=engine,
        session_maker=session_maker,
        runner=runner,
        notifier=notifier,
        partner_client=partner_client,
        provisioning=provisioning,
        registration=registration,
        reconciliation=reconciliation,
    )


__all__ = ["AppContext", "build_context"]
