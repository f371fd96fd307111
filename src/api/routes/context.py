"""Helpers compartilhados pelas rotas: container e contexto de logs."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from app.observability import (
    bind_session_id,
    get_correlation_id,
    reset_correlation_id,
    reset_session_id,
    set_correlation_id,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from fastapi import Request

    from app.bootstrap import GatewayContainer


def get_container(request: Request) -> GatewayContainer:
    """Container montado no lifespan (ou injetado em testes)."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        msg = "container não inicializado"
        raise RuntimeError(msg)
    return container


@contextmanager
def request_context(request: Request, session_id: str = "") -> Iterator[str]:
    """Vincula correlation_id (header x-correlation-id) e session_id aos logs."""
    correlation_token = set_correlation_id(request.headers.get("x-correlation-id"))
    session_token = bind_session_id(session_id) if session_id else None
    try:
        yield get_correlation_id()
    finally:
        if session_token is not None:
            reset_session_id(session_token)
        reset_correlation_id(correlation_token)
