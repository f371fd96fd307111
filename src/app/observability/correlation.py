"""Contexto de rastreamento: correlation_id da requisição e session_id ativo.

Ambos usam ContextVar para serem async-safe. Tasks criadas com
asyncio.create_task herdam uma cópia do contexto no momento da criação,
então o supervisor de cada sessão carrega o session_id em todos os logs.

Uso:
    token = set_correlation_id(request.headers.get("x-correlation-id"))
    try:
        ...
    finally:
        reset_correlation_id(token)
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_session_id: ContextVar[str] = ContextVar("session_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual (ou string vazia)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id no contexto atual.

    Args:
        correlation_id: ID a definir. Se None, gera um novo UUID.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    return _correlation_id.set(correlation_id or str(uuid.uuid4()))


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


def get_session_id() -> str:
    """Retorna o session_id vinculado ao contexto atual."""
    return _session_id.get()


def bind_session_id(session_id: str) -> Token[str]:
    """Vincula session_id ao contexto atual (logs passam a carregá-lo)."""
    return _session_id.set(session_id)


def reset_session_id(token: Token[str]) -> None:
    _session_id.reset(token)
