"""HTTP-клиент игровых партнёров.

Два вызова при регистрации:

* ``register_player``: подписанный REGISTER на игровой платформе
  (pid/ver/method/username/org/ip + sign с хвостом ``apikey``);
* ``create_member``: CreateMember у агрегатора, авторизованный производным
  ключом (см. ``keys.derive_key``).

Любой сетевой сбой, таймаут или не-2xx превращается в ``PartnerError``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

import aiohttp
from loguru import logger

from bethub.errors import PartnerError
from bethub.services.core.signature import SignatureEngine
from config.settings import GamePlatformSettings, PartnerSettings

from .keys import derive_key

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PartnerClient:
    def __init__(
        self,
        game_platform: GamePlatformSettings,
        partner: PartnerSettings,
        clock: Clock | None = None,
    ) -> None:
        self._game = game_platform
        self._partner = partner
        self._clock = clock or _utc_now
        self._signer = SignatureEngine(
            game_platform.api_secret.get_secret_value(),
            secret_field=game_platform.secret_field,
        )

    @property
    def game_platform_enabled(self) -> bool:
        return self._game.enabled

    @property
    def partner_enabled(self) -> bool:
        return self._partner.enabled

    def build_register_payload(self, username: str, org: str, ip: str) -> dict[str, str]:
        params = {
            "pid": self._game.pid,
            "ver": self._game.version,
            "method": "REGISTER",
            "username": username,
            "org": org,
            "ip": ip,
        }
        return self._signer.signed(params)

    def build_member_payload(self, account_id: str) -> dict[str, str]:
        key = derive_key(
            account_id,
            self._partner.agent_id,
            self._partner.agent_secret.get_secret_value(),
            self._clock(),
            tz=self._partner.timezone,
            prefix=self._partner.key_prefix,
            suffix=self._partner.key_suffix,
        )
        return {"Account": account_id, "AgentId": self._partner.agent_id, "Key": key}

    async def register_player(self, username: str, ip: str, org: str | None = None) -> Any:
        if not self._game.enabled:
            raise PartnerError("Game platform is not configured")
        payload = self.build_register_payload(username, org or self._game.org, ip)
        return await self._post(
            str(self._game.api_url),
            json=payload,
            timeout=self._game.request_timeout,
        )

    async def create_member(self, account_id: str) -> Any:
        if not self._partner.enabled:
            raise PartnerError("Partner is not configured")
        url = f"{str(self._partner.base_url).rstrip('/')}/CreateMember"
        return await self._post(
            url,
            data=self.build_member_payload(account_id),
            timeout=self._partner.request_timeout,
        )

    async def _post(
        self,
        url: str,
        *,
        json: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        timeout: float,
    ) -> Any:
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
                async with session.post(url, json=json, data=data) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        body = await resp.text()
                        raise PartnerError(f"HTTP {resp.status} from {url}: {body[:200]}")
                    try:
                        return await resp.json(content_type=None)
                    except ValueError:
                        return await resp.text()
        except asyncio.TimeoutError as exc:
            raise PartnerError(f"Timeout after {timeout}s calling {url}") from exc
        except aiohttp.ClientError as exc:
            logger.debug("Партнёр {url} недоступен: {error}", url=url, error=exc)
            raise PartnerError(f"Request to {url} failed: {exc}") from exc


__all__ = ["PartnerClient"]
