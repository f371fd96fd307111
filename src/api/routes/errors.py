"""Conversão de falhas de domínio em respostas HTTP estruturadas.

Falhas do chamador (4xx) usam `message`; falhas do servidor (5xx)
usam `error`. Toda resposta de erro carrega `success: false`.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from utils.errors import GatewayError, RateLimitedError


def gateway_error_response(exc: GatewayError) -> JSONResponse:
    key = "message" if exc.http_status < 500 else "error"
    content: dict[str, Any] = {"success": False, key: exc.message}
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedError):
        content["retryAfter"] = exc.retry_after_seconds
        headers["Retry-After"] = str(exc.retry_after_seconds)
    return JSONResponse(content=content, status_code=exc.http_status, headers=headers or None)


def unexpected_error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(
        content={"success": False, "error": str(exc) or type(exc).__name__},
        status_code=500,
    )
