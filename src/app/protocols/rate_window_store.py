"""Protocolo de armazenamento das janelas de rate limit.

Cada janela é a sequência cronológica de timestamps (segundos) dos
envios admitidos para uma sessão. A serialização por sessão é feita
pelo rate limiter; o store só guarda e poda.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class RateWindowStoreProtocol(ABC):
    """Contrato mínimo de janelas deslizantes por sessão."""

    @abstractmethod
    async def prune_and_list(self, session_id: str, cutoff: float) -> list[float]:
        """Remove timestamps <= cutoff e retorna os restantes em ordem."""

    @abstractmethod
    async def append(self, session_id: str, timestamp: float, ttl_seconds: float) -> None:
        """Acrescenta timestamp admitido ao fim da janela."""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove a janela. Idempotente: False se não havia nada."""
