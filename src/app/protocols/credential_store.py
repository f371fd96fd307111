"""Protocolo de persistência de credenciais por sessão.

O formato das credenciais é opaco para o core: um dict serializável
produzido e consumido pelo cliente de protocolo.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Credentials = dict[str, Any]


class CredentialStoreProtocol(ABC):
    """Contrato mínimo de armazenamento de credenciais (uma área por sessão)."""

    @abstractmethod
    async def prepare(self, session_id: str) -> None:
        """Garante a área de credenciais da sessão (ex.: cria diretório).

        Falhas aqui são fatais para a chamada de ensure_session.
        """

    @abstractmethod
    async def load(self, session_id: str) -> Credentials:
        """Carrega credenciais; retorna dict vazio se a sessão é nova."""

    @abstractmethod
    async def persist(self, session_id: str, credentials: Credentials) -> None:
        """Persiste credenciais atualizadas pelo handle."""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove credenciais. Idempotente: False se não havia nada."""
