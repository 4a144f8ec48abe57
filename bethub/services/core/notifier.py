"""Уведомления в ops-чат Telegram (fire-and-forget)."""

from __future__ import annotations

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from loguru import logger

from config.settings import NotificationSettings


class OpsNotifier:
    """Отправляет короткие сообщения операторам. Ошибки не пробрасываются."""

    def __init__(self, settings: NotificationSettings, bot: Bot | None = None) -> None:
        self._chat_id = settings.chat_id
        if bot is None and settings.bot_token is not None and settings.chat_id is not None:
            bot = Bot(token=settings.bot_token.get_secret_value())
        self._bot = bot

    @property
    def enabled(self) -> bool:
        return self._bot is not None and self._chat_id is not None

    async def notify(self, text: str) -> bool:
        bot, chat_id = self._bot, self._chat_id
        if bot is None or chat_id is None:
            logger.debug("Ops-уведомление пропущено (чат не настроен): {text}", text=text)
            return False
        try:
            await bot.send_message(chat_id=chat_id, text=text)
        except (TelegramAPIError, OSError) as exc:
            logger.warning("Не удалось отправить ops-уведомление: {error}", error=exc)
            return False
        return True

    async def close(self) -> None:
        if self._bot is not None:
            await self._bot.session.close()


__all__ = ["OpsNotifier"]
