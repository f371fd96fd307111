"""Filters de logging para injeção de contexto.

Campos injetados:
- correlation_id: ID de rastreamento da requisição
- session_id: sessão de protocolo em processamento (quando houver)
- service: Nome do serviço

Números de destinatários nunca entram nos logs sem máscara.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id, session_id e service em cada record de log.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
        session_id_getter: Função que retorna o session_id do contexto atual.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
        session_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")
        self._get_session_id = session_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        """Enriquece o record; valores passados via `extra` são preservados.

        Returns:
            True sempre (não filtra, apenas enriquece).
        """
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        existing_session = getattr(record, "session_id", None)
        record.session_id = existing_session if existing_session else self._get_session_id()
        record.service = self._service_name
        return True


def mask_recipient(recipient: str) -> str:
    """Mascara número de destinatário para logs (mantém últimos 4 dígitos)."""
    local_part = recipient.split("@", 1)[0]
    if len(local_part) <= 4:
        return "****"
    return f"***{local_part[-4:]}"
