"""Глобальные настройки BetHub.

Настройки разделены по доменам (платёжный шлюз, игровые партнёры, регистрация,
уведомления и т.д.), чтобы каждый сервис получал только свой раздел через
конструктор. Вся конфигурация загружается из переменных окружения через
Pydantic Settings, секреты хранятся как ``SecretStr`` и не попадают в логи.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
ACCESSIBLE_ENV_FILE = BASE_DIR / "config" / "runtime.env"
DEFAULT_ENV_FILE = BASE_DIR / ".env"
ENV_FILE = ACCESSIBLE_ENV_FILE if ACCESSIBLE_ENV_FILE.exists() else DEFAULT_ENV_FILE


def _empty_str_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class DatabaseSettings(BaseModel):
    """SQLModel + aiosqlite (по умолчанию) и готовность к Postgres."""

    dsn: str = Field(
        "sqlite+aiosqlite:///./database/bethub.db",
        description="Строка подключения SQLAlchemy/SQLModel",
    )
    echo: bool = False


class MerchantSettings(BaseModel):
    """Платёжный шлюз, присылающий callback об оплате."""

    signing_secret: SecretStr = Field(..., description="Ключ подписи callback (mchKey)")
    secret_field: str = Field("key", description="Имя поля, под которым секрет дописывается к строке")
    ack_token: str = Field("success", description="Ответ, который шлюз ждёт при успехе")


class GamePlatformSettings(BaseModel):
    """Игровая платформа с подписанным вызовом REGISTER."""

    api_url: AnyHttpUrl | None = Field(None, description="Эндпоинт API платформы")
    pid: str = ""
    version: str = ""
    api_secret: SecretStr = SecretStr("")
    secret_field: str = "apikey"
    org: str = "1"
    request_timeout: PositiveFloat = 10.0

    @field_validator("api_url", mode="before")
    @classmethod
    def _empty_url_to_none(cls, value):
        return _empty_str_to_none(value)

    @property
    def enabled(self) -> bool:
        return self.api_url is not None and bool(self.pid)


class PartnerSettings(BaseModel):
    """Партнёр, создающий теневой аккаунт по производному ключу (CreateMember)."""

    base_url: AnyHttpUrl | None = Field(None, description="Базовый URL API партнёра")
    agent_id: str = ""
    agent_secret: SecretStr = SecretStr("")
    timezone: str = Field("America/Puerto_Rico", description="Опорная зона для токена даты (UTC-4)")
    key_prefix: str = "123456"
    key_suffix: str = "abcdef"
    request_timeout: PositiveFloat = 10.0

    @field_validator("base_url", mode="before")
    @classmethod
    def _empty_url_to_none(cls, value):
        return _empty_str_to_none(value)

    @property
    def enabled(self) -> bool:
        return self.base_url is not None and bool(self.agent_id)


class RegistrationSettings(BaseModel):
    """Правила регистрации и антиабуз."""

    bcrypt_rounds: int = Field(5, ge=4, le=31, description="Work factor bcrypt")
    max_accounts_per_ip: int = 3
    identity_digits: PositiveInt = 7
    identity_max_attempts: PositiveInt = 10
    starting_balance: Decimal = Decimal("28")
    bonus_on_register: Decimal = Decimal("0")
    tier_thresholds: list[int] = Field(
        default_factory=lambda: [2, 5, 8, 11, 14, 17, 20, 23, 26, 29, 32, 35, 38, 41, 44]
    )
    flatten_tier: int = Field(2, description="Уровень, на котором атрибуция 'ctv' схлопывается")


class SecuritySettings(BaseModel):
    """JWT для сессии, выдаваемой при регистрации."""

    jwt_secret: SecretStr = Field(..., description="Секрет для подписания JWT")
    jwt_algorithm: str = "HS256"
    jwt_ttl_minutes: int = 60 * 24


class NotificationSettings(BaseModel):
    """Ops-чат в Telegram для уведомлений о пополнениях."""

    bot_token: SecretStr | None = None
    chat_id: int | str | None = None

    @field_validator("bot_token", "chat_id", mode="before")
    @classmethod
    def _empty_to_none(cls, value):
        return _empty_str_to_none(value)

    @property
    def enabled(self) -> bool:
        return self.bot_token is not None and bool(self.bot_token.get_secret_value()) and self.chat_id is not None


class TaskSettings(BaseModel):
    """Фоновый пул для fire-and-forget задач."""

    workers: PositiveInt = 4
    queue_size: PositiveInt = 1000


class ServerSettings(BaseModel):
    """Параметры uvicorn."""

    host: str = "0.0.0.0"
    port: int = 3000
    json_logs: bool = False


class AppSettings(BaseSettings):
    """Главный контейнер настроек BetHub."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Literal["dev", "prod"] = "dev"
    database: DatabaseSettings = DatabaseSettings()
    merchant: MerchantSettings
    game_platform: GamePlatformSettings = GamePlatformSettings()
    partner: PartnerSettings = PartnerSettings()
    registration: RegistrationSettings = RegistrationSettings()
    security: SecuritySettings
    notifications: NotificationSettings = NotificationSettings()
    tasks: TaskSettings = TaskSettings()
    server: ServerSettings = ServerSettings()

    @property
    def is_production(self) -> bool:
        """True, если сервис запущен в продовой среде."""

        return self.environment == "prod"


# Ленивый синглтон (избегаем глобальных переменных в модулях).
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Возвращает единый экземпляр настроек.

    Значения кэшируются, поэтому .env читается ровно один раз за процесс.
    """

    global _settings
    if _settings is None:
        _settings = AppSettings()  # type: ignore[call-arg]
    return _settings


__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "GamePlatformSettings",
    "MerchantSettings",
    "NotificationSettings",
    "PartnerSettings",
    "RegistrationSettings",
    "SecuritySettings",
    "ServerSettings",
    "TaskSettings",
    "get_settings",
]
