"""JWT сессии, дайджест токена и хеширование паролей."""

from __future__ import annotations

import hashlib
import time
from typing import Any, Dict

import bcrypt
import jwt
from jwt import InvalidTokenError

from config.settings import SecuritySettings


def issue_session_token(
    settings: SecuritySettings,
    subject: str,
    claims: Dict[str, Any] | None = None,
    ttl_minutes: int | None = None,
) -> str:
    """Выдаёт JWT, привязанный к identity_code аккаунта."""

    ttl = ttl_minutes or settings.jwt_ttl_minutes
    now = int(time.time())
    payload: Dict[str, Any] = {
        **(claims or {}),
        "sub": subject,
        "iat": now,
        "exp": now + ttl * 60,
    }
    return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_session_token(settings: SecuritySettings, token: str) -> Dict[str, Any]:
    """Валидирует и возвращает payload JWT."""

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
    except InvalidTokenError as exc:
        raise ValueError("Invalid session token") from exc
    return payload


def token_digest(token: str) -> str:
    """MD5 токена: по нему аккаунт ищется при следующих запросах."""

    return hashlib.md5(token.encode("utf-8")).hexdigest()


def hash_password(raw: str, rounds: int) -> str:
    return bcrypt.hashpw(raw.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


__all__ = [
    "decode_session_token",
    "hash_password",
    "issue_session_token",
    "token_digest",
]
