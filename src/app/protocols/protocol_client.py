"""Contrato do cliente de protocolo de mensagens.

O cliente é um colaborador opaco: abre um handle por sessão, emite
eventos de ciclo de vida e expõe consulta de existência e envio.
Os eventos são consumidos como um canal (`events()`) por uma única
task supervisora por sessão.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from app.protocols.credential_store import Credentials


class LifecycleEventKind(StrEnum):
    """Tipos de evento emitidos pelo handle."""

    PAIRING_CHALLENGE = "pairing_challenge"
    CONNECTED = "connected"
    CLOSED = "closed"
    CREDENTIALS_UPDATED = "credentials_updated"


class DisconnectReason(StrEnum):
    """Motivos de encerramento relevantes para o ciclo de vida.

    Apenas LOGGED_OUT é destrutivo; qualquer outro motivo leva à reconexão.
    """

    LOGGED_OUT = "logged_out"
    CONNECTION_LOST = "connection_lost"
    CONNECTION_CLOSED = "connection_closed"
    TIMED_OUT = "timed_out"
    RESTART_REQUIRED = "restart_required"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class LifecycleEvent:
    """Evento de ciclo de vida emitido pelo handle.

    Attributes:
        kind: Tipo do evento
        pairing_code: Conteúdo do desafio (somente PAIRING_CHALLENGE)
        reason: Motivo do encerramento (somente CLOSED)
        status_code: Código bruto reportado pela rede (diagnóstico)
        credentials: Credenciais atualizadas (somente CREDENTIALS_UPDATED)
    """

    kind: LifecycleEventKind
    pairing_code: str | None = None
    reason: DisconnectReason | None = None
    status_code: int | None = None
    credentials: Credentials | None = None

    @classmethod
    def pairing(cls, code: str) -> LifecycleEvent:
        return cls(kind=LifecycleEventKind.PAIRING_CHALLENGE, pairing_code=code)

    @classmethod
    def connected(cls) -> LifecycleEvent:
        return cls(kind=LifecycleEventKind.CONNECTED)

    @classmethod
    def closed(cls, reason: DisconnectReason, status_code: int | None = None) -> LifecycleEvent:
        return cls(kind=LifecycleEventKind.CLOSED, reason=reason, status_code=status_code)

    @classmethod
    def credentials_updated(cls, credentials: Credentials) -> LifecycleEvent:
        return cls(kind=LifecycleEventKind.CREDENTIALS_UPDATED, credentials=credentials)


@dataclass(frozen=True, slots=True)
class VersionInfo:
    """Versão de protocolo anunciada ao abrir o handle."""

    version: tuple[int, ...]
    is_latest: bool = True


@dataclass(frozen=True, slots=True)
class OpenOptions:
    """Parâmetros de abertura de um handle."""

    session_id: str
    credentials: Credentials
    version: VersionInfo
    browser: tuple[str, str, str] = ("MultiBot", "Chrome", "1.0")
    extra: dict[str, Any] = field(default_factory=dict)


class ProtocolHandleProtocol(Protocol):
    """Handle exclusivo de uma sessão na rede de mensagens."""

    def events(self) -> AsyncIterator[LifecycleEvent]:
        """Canal de eventos; termina quando o handle é fechado."""
        ...

    async def query_exists(self, address: str) -> bool: ...

    async def send_text(self, address: str, text: str) -> dict[str, Any]: ...

    async def send_image(
        self,
        address: str,
        image: bytes,
        caption: str | None = None,
        mimetype: str | None = None,
    ) -> dict[str, Any]: ...

    async def close(self) -> None: ...


class ProtocolClientFactoryProtocol(Protocol):
    """Fábrica de handles de protocolo."""

    async def fetch_latest_version(self) -> VersionInfo: ...

    async def open(self, options: OpenOptions) -> ProtocolHandleProtocol: ...
