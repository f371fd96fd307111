"""Protocolo de download de mídia remota (imagem por URL)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class FetchedMedia:
    """Bytes de mídia baixados e o tipo MIME reportado."""

    content: bytes
    mime_type: str | None = None


class RemoteMediaFetcherProtocol(Protocol):
    """Contrato mínimo para baixar mídia por URL."""

    async def fetch(self, url: str) -> FetchedMedia: ...
