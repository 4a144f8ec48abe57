"""FastAPI backend: регистрация, callback платёжного шлюза, баланс."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from pydantic import BaseModel

from bethub.context import AppContext, build_context
from bethub.errors import ValidationError
from bethub.middlewares.errors import register_error_handlers
from bethub.models import Account
from bethub.repositories import get_account_by_token_digest
from bethub.services.core.registration import RegistrationRequest
from bethub.utils.security import decode_session_token, token_digest

bearer_scheme = HTTPBearer(auto_error=True)


class RegisterResponse(BaseModel):
    status: bool = True
    message: str = "Registered successfully"
    token: str
    value: str
    provisioning: str


class BalanceResponse(BaseModel):
    status: bool = True
    identity_code: str
    balance: str
    total_deposit: str
    tier_level: int


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def client_ip(request: Request) -> str | None:
    """Первый адрес из X-Forwarded-For, иначе адрес сокета; без префикса ::ffff:."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        address = forwarded.split(",")[0].strip()
    elif request.client is not None:
        address = request.client.host
    else:
        return None
    if address.startswith("::ffff:"):
        address = address[7:]
    return address or None


async def read_callback_payload(request: Request) -> dict[str, Any]:
    """Шлюз присылает callback либо формой, либо JSON-ом."""

    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = await request.json()
        except json.JSONDecodeError as exc:
            raise ValidationError("Malformed JSON body") from exc
        if not isinstance(data, dict):
            raise ValidationError("Callback body must be an object")
        return data
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    context: AppContext = Depends(get_context),
) -> Account:
    try:
        decode_session_token(context.settings.security, credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    async with context.session_maker() as session:
        account = await get_account_by_token_digest(session, token_digest(credentials.credentials))
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session is no longer valid")
    return account


def create_app(context: AppContext | None = None) -> FastAPI:
    ctx = context or build_context()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ctx.startup()
        try:
            yield
        finally:
            await ctx.shutdown()

    app = FastAPI(title="BetHub API", lifespan=lifespan)
    app.state.context = ctx
    register_error_handlers(app)

    @app.post("/api/account/register", response_model=RegisterResponse)
    async def register_account(
        payload: RegistrationRequest,
        request: Request,
        context: AppContext = Depends(get_context),
    ) -> RegisterResponse:
        result = await context.registration.register(payload, client_ip(request))
        return RegisterResponse(token=result.token, value=result.token_digest, provisioning=result.provisioning)

    async def payment_callback(request: Request, context: AppContext = Depends(get_context)) -> PlainTextResponse:
        payload = await read_callback_payload(request)
        ack = await context.reconciliation.handle_callback(payload)
        logger.debug("Callback {order} подтверждён (credited={credited})", order=ack.order_id, credited=ack.credited)
        return PlainTextResponse(context.settings.merchant.ack_token)

    app.add_api_route("/api/payments/callback", payment_callback, methods=["POST"])
    # старый путь, который прописан в кабинете шлюза
    app.add_api_route("/webhook", payment_callback, methods=["POST"], include_in_schema=False)

    @app.get("/api/account/balance", response_model=BalanceResponse)
    async def account_balance(account: Account = Depends(get_current_account)) -> BalanceResponse:
        return BalanceResponse(
            identity_code=account.identity_code,
            balance=str(account.balance),
            total_deposit=str(account.total_deposit),
            tier_level=account.tier_level,
        )

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "ok", "service": "bethub"}

    return app


__all__ = ["client_ip", "create_app", "read_callback_payload"]
