"""Таксономия ошибок ядра: у каждой ошибки стабильный код и HTTP-статус."""

from __future__ import annotations


class BetHubError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"status": False, "code": self.code, "message": self.message}


class ValidationError(BetHubError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request"


class InternalError(BetHubError):
    pass


class RegistrationError(BetHubError):
    """Базовый класс отказов регистрации."""


class DuplicatePhone(RegistrationError):
    code = "DUPLICATE_PHONE"
    status_code = 409
    default_message = "Registered phone number"


class InvalidReferrer(RegistrationError):
    code = "INVALID_REFERRER"
    status_code = 422
    default_message = "Referrer code does not exist"


class TooManyAccountsFromOrigin(RegistrationError):
    code = "TOO_MANY_ACCOUNTS_FROM_ORIGIN"
    status_code = 429
    default_message = "Registered IP address"


class IdentityExhausted(RegistrationError):
    code = "IDENTITY_EXHAUSTED"
    status_code = 503
    default_message = "Could not allocate account id, try again later"


class ReconciliationError(BetHubError):
    """Базовый класс отказов callback-а."""


class MissingSignature(ReconciliationError):
    code = "MISSING_SIGNATURE"
    status_code = 400
    default_message = "fail(sign not exists)"


class SignatureMismatch(ReconciliationError):
    code = "SIGNATURE_MISMATCH"
    status_code = 400
    default_message = "fail(verify fail)"


class OrderNotFound(ReconciliationError):
    code = "ORDER_NOT_FOUND"
    status_code = 404
    default_message = "No data found for the provided Order ID"


class PartnerError(RuntimeError):
    """Сбой вызова партнёра. Никогда не доходит до клиента регистрации."""


__all__ = [
    "BetHubError",
    "DuplicatePhone",
    "IdentityExhausted",
    "InternalError",
    "InvalidReferrer",
    "MissingSignature",
    "OrderNotFound",
    "PartnerError",
    "ReconciliationError",
    "RegistrationError",
    "SignatureMismatch",
    "TooManyAccountsFromOrigin",
    "ValidationError",
]
