"""Protocolo de armazenamento do artefato de pareamento (imagem QR)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PairingArtifact:
    """Artefato de pareamento pronto para entrega.

    Attributes:
        session_id: Sessão dona do artefato
        reference: Referência persistida (ex.: caminho do PNG)
        content: Bytes da imagem
        media_type: Tipo MIME da imagem
    """

    session_id: str
    reference: str
    content: bytes
    media_type: str = "image/png"


class PairingArtifactStoreProtocol(ABC):
    """Contrato mínimo de armazenamento de artefatos de pareamento."""

    @abstractmethod
    async def save(self, session_id: str, pairing_code: str) -> str:
        """Renderiza e persiste o artefato; retorna a referência."""

    @abstractmethod
    async def load(self, session_id: str) -> PairingArtifact | None:
        """Carrega o artefato atual ou None se inexistente."""

    @abstractmethod
    async def exists(self, session_id: str) -> bool: ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove o artefato. Idempotente: False se não havia nada."""
