"""Сверка пополнений по callback-у платёжного шлюза.

Заказ переходит pending -> settled ровно один раз. Подпись проверяется до
любого обращения к БД; переход выполняется compare-and-swap UPDATE-ом, и
только выигравший переход начисляет баланс. Повторный callback по уже
закрытому заказу считается успешным no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bethub.errors import (
    BetHubError,
    InternalError,
    MissingSignature,
    OrderNotFound,
    SignatureMismatch,
    ValidationError,
)
from bethub.repositories import credit_balance, find_owner_ids, get_order, mark_settled
from bethub.services.core.notifier import OpsNotifier
from bethub.services.core.signature import SIGN_FIELD, SignatureEngine
from bethub.utils.locks import KeyedLock
from bethub.utils.tasks import BackgroundRunner

CALLBACK_FIELDS: tuple[str, ...] = (
    "mchOrderNo",
    "income",
    "mchId",
    "appId",
    "productId",
    "payOrderId",
    "amount",
    "status",
    "channelOrderNo",
    "param1",
    "param2",
    "paySuccTime",
    "backType",
)


@dataclass(slots=True, frozen=True)
class SettlementAck:
    order_id: str
    credited: bool
    amount: Decimal | None = None
    phone: str | None = None


class ReconciliationService:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        signer: SignatureEngine,
        *,
        notifier: OpsNotifier | None = None,
        runner: BackgroundRunner | None = None,
        order_locks: KeyedLock | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_maker = session_maker
        self._signer = signer
        self._notifier = notifier
        self._runner = runner
        self._locks = order_locks or KeyedLock()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def authenticate(self, payload: Mapping[str, Any]) -> str:
        """Проверяет подпись и возвращает номер заказа. БД не трогает."""

        provided = payload.get(SIGN_FIELD)
        if provided is None or str(provided) == "":
            raise MissingSignature()
        if not self._signer.verify(payload, str(provided), fields=CALLBACK_FIELDS):
            logger.warning("Callback с неверной подписью отклонён")
            raise SignatureMismatch()
        order_id = str(payload.get("mchOrderNo") or "").strip()
        if not order_id:
            raise ValidationError("mchOrderNo is required")
        return order_id

    async def handle_callback(self, payload: Mapping[str, Any]) -> SettlementAck:
        order_id = self.authenticate(payload)
        pay_order_id = payload.get("payOrderId")
        async with self._locks.acquire(order_id):
            try:
                ack = await self._settle(order_id, str(pay_order_id) if pay_order_id else None)
            except BetHubError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.exception("Ошибка при зачислении заказа {order}: {error}", order=order_id, error=exc)
                raise InternalError() from exc
        if ack.credited:
            self._schedule_notification(ack, pay_order_id)
        return ack

    async def _settle(self, order_id: str, pay_order_id: str | None) -> SettlementAck:
        async with self._session_maker() as session:
            order = await get_order(session, order_id)
            if order is None:
                logger.info("Callback по неизвестному заказу {order}", order=order_id)
                raise OrderNotFound()
            # rollback экспайрит загруженные объекты, дальше работаем только с копиями полей
            amount, phone, dial_code = order.amount, order.phone, order.dial_code
            untouched = SettlementAck(order_id=order_id, credited=False, amount=amount, phone=phone)
            if order.is_settled:
                logger.info("Заказ {order} уже зачислен, повторный callback проигнорирован", order=order_id)
                return untouched

            try:
                won = await mark_settled(session, order_id, pay_order_id=pay_order_id, settled_at=self._clock())
                if not won:
                    await session.rollback()
                    logger.info("Заказ {order} закрыт параллельным callback-ом", order=order_id)
                    return untouched
                owners = await find_owner_ids(session, phone, dial_code)
                if len(owners) != 1:
                    raise InternalError(f"Order {order_id} matches {len(owners)} accounts")
                if await credit_balance(session, owners[0], amount) != 1:
                    raise InternalError(f"Account for order {order_id} was not credited")
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Заказ {order} зачислен: {amount} на {phone}", order=order_id, amount=amount, phone=phone)
        return SettlementAck(order_id=order_id, credited=True, amount=amount, phone=phone)

    def _schedule_notification(self, ack: SettlementAck, pay_order_id: Any) -> None:
        if self._notifier is None or self._runner is None:
            return
        text = (
            f"Order No: {ack.order_id}\n"
            f"Pay Order ID: {pay_order_id or '-'}\n"
            f"User Phone: {ack.phone}\n"
            f"Amount: {ack.amount}"
        )
        notifier = self._notifier
        self._runner.submit(f"notify:{ack.order_id}", lambda: notifier.notify(text))


__all__ = ["CALLBACK_FIELDS", "ReconciliationService", "SettlementAck"]
