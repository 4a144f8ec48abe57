"""Глобальный перехват и логирование ошибок FastAPI."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from bethub.errors import BetHubError, InternalError, ValidationError


async def handle_domain_error(request: Request, exc: BetHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{path}: {code} {message}", path=request.url.path, code=exc.code, message=exc.message)
    else:
        logger.info("{path}: отказ {code}", path=request.url.path, code=exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationError(message).as_dict(),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Необработанная ошибка на {path}", path=request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=InternalError().as_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BetHubError, handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)


__all__ = ["register_error_handlers"]
