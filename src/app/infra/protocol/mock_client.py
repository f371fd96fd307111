"""Cliente de protocolo mock para testes e desenvolvimento.

Simula o comportamento observável de um handle real sem tocar a rede:
- credenciais novas → emite desafio de pareamento
- credenciais registradas → conecta imediatamente
- hooks `simulate_*` disparam pareamento, renovação de QR e quedas

Implementa ProtocolClientFactoryProtocol / ProtocolHandleProtocol.
"""

from __future__ import annotations

import asyncio
import secrets
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.protocols.protocol_client import (
    DisconnectReason,
    LifecycleEvent,
    OpenOptions,
    VersionInfo,
)
from utils.errors import UnexpectedProtocolError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from app.protocols.credential_store import Credentials

MOCK_PROTOCOL_VERSION = (2, 3000, 1015901307)


def _generate_pairing_code() -> str:
    """Gera desafio no formato ref,noise,identity,secret."""
    parts = [f"2@{secrets.token_urlsafe(24)}"] + [secrets.token_urlsafe(32) for _ in range(3)]
    return ",".join(parts)


class MockProtocolHandle:
    """Handle mock de uma sessão."""

    def __init__(
        self,
        session_id: str,
        credentials: Credentials,
        unknown_numbers: frozenset[str] = frozenset(),
    ) -> None:
        self.session_id = session_id
        self.credentials: Credentials = dict(credentials)
        self.sent: list[dict[str, Any]] = []
        self._unknown_numbers = unknown_numbers
        self._queue: asyncio.Queue[LifecycleEvent | None] = asyncio.Queue()
        self._connected = False
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Enfileira o primeiro evento conforme o estado das credenciais."""
        if self.credentials.get("registered"):
            self._connected = True
            self._queue.put_nowait(LifecycleEvent.connected())
        else:
            self._queue.put_nowait(LifecycleEvent.pairing(_generate_pairing_code()))

    async def events(self) -> AsyncIterator[LifecycleEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    # ──────────────────────────────────────────────────────────────
    # Hooks de simulação
    # ──────────────────────────────────────────────────────────────

    def simulate_refresh_pairing(self) -> str:
        """Emite novo desafio (QR expirado e renovado)."""
        code = _generate_pairing_code()
        self._queue.put_nowait(LifecycleEvent.pairing(code))
        return code

    def simulate_pair(self) -> None:
        """Simula leitura do QR: credenciais registradas e conexão aberta."""
        self.credentials = {
            **self.credentials,
            "registered": True,
            "me": {"id": f"{self.session_id}@mock"},
            "paired_at": datetime.now(UTC).isoformat(),
        }
        self._connected = True
        self._queue.put_nowait(LifecycleEvent.credentials_updated(dict(self.credentials)))
        self._queue.put_nowait(LifecycleEvent.connected())

    def simulate_close(
        self,
        reason: DisconnectReason = DisconnectReason.CONNECTION_LOST,
        status_code: int | None = None,
    ) -> None:
        """Simula encerramento pela rede; o canal de eventos termina em seguida."""
        self._connected = False
        self._queue.put_nowait(LifecycleEvent.closed(reason, status_code))
        self._queue.put_nowait(None)

    # ──────────────────────────────────────────────────────────────
    # Capacidades
    # ──────────────────────────────────────────────────────────────

    async def query_exists(self, address: str) -> bool:
        self._ensure_open()
        local_part = address.split("@", 1)[0]
        return local_part.isdigit() and local_part not in self._unknown_numbers

    async def send_text(self, address: str, text: str) -> dict[str, Any]:
        return self._record_send(address, {"conversation": text})

    async def send_image(
        self,
        address: str,
        image: bytes,
        caption: str | None = None,
        mimetype: str | None = None,
    ) -> dict[str, Any]:
        return self._record_send(
            address,
            {
                "imageMessage": {
                    "caption": caption or "",
                    "mimetype": mimetype or "image/jpeg",
                    "fileLength": len(image),
                }
            },
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._connected = False
        self._queue.put_nowait(None)

    def _ensure_open(self) -> None:
        if self._closed or not self._connected:
            raise UnexpectedProtocolError("Connection Closed")

    def _record_send(self, address: str, message: dict[str, Any]) -> dict[str, Any]:
        self._ensure_open()
        ack = {
            "key": {"remoteJid": address, "fromMe": True, "id": uuid.uuid4().hex[:20].upper()},
            "message": message,
            "messageTimestamp": int(datetime.now(UTC).timestamp()),
            "status": "PENDING",
        }
        self.sent.append(ack)
        return ack


class MockProtocolClientFactory:
    """Fábrica de handles mock.

    Args:
        unknown_numbers: Números que a consulta de existência reporta como inexistentes
    """

    def __init__(self, unknown_numbers: frozenset[str] | set[str] = frozenset()) -> None:
        self._unknown_numbers = frozenset(unknown_numbers)
        self.handles: dict[str, MockProtocolHandle] = {}
        self.open_count = 0
        self.last_options: OpenOptions | None = None

    async def fetch_latest_version(self) -> VersionInfo:
        return VersionInfo(version=MOCK_PROTOCOL_VERSION, is_latest=True)

    async def open(self, options: OpenOptions) -> MockProtocolHandle:
        self.open_count += 1
        self.last_options = options
        handle = MockProtocolHandle(
            options.session_id,
            options.credentials,
            unknown_numbers=self._unknown_numbers,
        )
        handle.start()
        self.handles[options.session_id] = handle
        return handle
