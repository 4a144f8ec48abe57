"""Производный ключ для CreateMember.

Партнёр ожидает ключ вида ``<prefix><md5><suffix>``, где md5 привязан к
аккаунту и к текущей дате в его часовом поясе. Сам секрет агента в запрос не
уходит.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Puerto_Rico"


def md5_hex(data: str) -> str:
    return hashlib.md5(data.encode("utf-8")).hexdigest()


def date_token(moment: datetime, tz: str = DEFAULT_TIMEZONE) -> str:
    """``YY`` + месяц + день без ведущих нулей: 2024-12-01 -> ``24121``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(ZoneInfo(tz))
    return f"{local.year % 100:02d}{local.month}{local.day}"


def derive_key(
    account_id: str,
    agent_id: str,
    agent_secret: str,
    timestamp: datetime,
    *,
    tz: str = DEFAULT_TIMEZONE,
    prefix: str = "123456",
    suffix: str = "abcdef",
) -> str:
    key_g = md5_hex(f"{date_token(timestamp, tz)}{agent_id}{agent_secret}")
    payload = md5_hex(f"Account={account_id}&AgentId={agent_id}{key_g}")
    return f"{prefix}{payload}{suffix}"


__all__ = ["DEFAULT_TIMEZONE", "date_token", "derive_key", "md5_hex"]
