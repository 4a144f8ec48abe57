"""Подписи запросов к партнёрам (MD5 по отсортированным параметрам).

Одна и та же схема используется в обе стороны: исходящие вызовы игровой
платформы подписываются с хвостом ``apikey=<secret>``, входящие callback-и
платёжного шлюза проверяются с хвостом ``key=<secret>``. Секрет нигде не
логируется.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Iterable, Mapping

SIGN_FIELD = "sign"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def canonical_params(
    payload: Mapping[str, Any],
    fields: Iterable[str] | None = None,
    *,
    exclude: Iterable[str] = (SIGN_FIELD,),
) -> dict[str, str]:
    """Оставляет только подписываемые поля.

    Поле подписи и пустые значения (``None`` / ``""``) выбрасываются, чтобы
    разные версии payload-а партнёра давали одинаковую строку.
    """

    excluded = set(exclude)
    keys = list(fields) if fields is not None else list(payload.keys())
    result: dict[str, str] = {}
    for key in keys:
        if key in excluded:
            continue
        value = payload.get(key)
        if value is None:
            continue
        text = _stringify(value)
        if text == "":
            continue
        result[key] = text
    return result


def signing_string(params: Mapping[str, Any], secret: str, secret_field: str = "key") -> str:
    # сортировка по байтам, а не по локали
    ordered = sorted(params.keys(), key=lambda k: k.encode("utf-8"))
    pairs = [f"{key}={_stringify(params[key])}" for key in ordered]
    pairs.append(f"{secret_field}={secret}")
    return "&".join(pairs)


def sign(params: Mapping[str, Any], secret: str, secret_field: str = "key") -> str:
    """MD5 (hex, верхний регистр) канонической строки параметров."""

    raw = signing_string(params, secret, secret_field).encode("utf-8")
    return hashlib.md5(raw).hexdigest().upper()


def verify(
    params: Mapping[str, Any],
    secret: str,
    provided: str | None,
    secret_field: str = "key",
    fields: Iterable[str] | None = None,
) -> bool:
    """Пересчитывает подпись по непустым полям и сравнивает с присланной."""

    if not provided:
        return False
    expected = sign(canonical_params(params, fields), secret, secret_field)
    return hmac.compare_digest(expected.encode("utf-8"), str(provided).encode("utf-8"))


class SignatureEngine:
    """Подпись с привязанным секретом (удобно передавать в сервисы)."""

    def __init__(self, secret: str, secret_field: str = "key") -> None:
        self._secret = secret
        self._secret_field = secret_field

    def sign(self, params: Mapping[str, Any]) -> str:
        return sign(canonical_params(params), self._secret, self._secret_field)

    def signed(self, params: Mapping[str, Any]) -> dict[str, str]:
        """Возвращает копию параметров с добавленным полем ``sign``."""

        payload = canonical_params(params)
        payload[SIGN_FIELD] = sign(payload, self._secret, self._secret_field)
        return payload

    def verify(self, params: Mapping[str, Any], provided: str | None, fields: Iterable[str] | None = None) -> bool:
        return verify(params, self._secret, provided, self._secret_field, fields)

    def __repr__(self) -> str:
        return f"SignatureEngine(secret_field={self._secret_field!r}, secret=***)"


__all__ = [
    "SIGN_FIELD",
    "SignatureEngine",
    "canonical_params",
    "sign",
    "signing_string",
    "verify",
]
