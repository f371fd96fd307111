"""Stores em memória — janelas de rate limit e stores de dev/test.

ATENÇÃO: credenciais e artefatos em memória não sobrevivem a reinícios.
MemoryRateWindowStore é o backend padrão do rate limiter.
"""

from __future__ import annotations

import copy
from collections import deque
from typing import TYPE_CHECKING

from app.protocols.credential_store import CredentialStoreProtocol, Credentials
from app.protocols.pairing_store import PairingArtifact, PairingArtifactStoreProtocol
from app.protocols.rate_window_store import RateWindowStoreProtocol

if TYPE_CHECKING:
    from collections.abc import Callable


class MemoryRateWindowStore(RateWindowStoreProtocol):
    """Janelas deslizantes em memória (uma deque cronológica por sessão)."""

    def __init__(self) -> None:
        self._windows: dict[str, deque[float]] = {}

    async def prune_and_list(self, session_id: str, cutoff: float) -> list[float]:
        window = self._windows.get(session_id)
        if window is None:
            return []
        # Ordem de inserção == ordem cronológica: poda pela esquerda
        while window and window[0] <= cutoff:
            window.popleft()
        if not window:
            del self._windows[session_id]
            return []
        return list(window)

    async def append(self, session_id: str, timestamp: float, ttl_seconds: float) -> None:
        self._windows.setdefault(session_id, deque()).append(timestamp)

    async def delete(self, session_id: str) -> bool:
        return self._windows.pop(session_id, None) is not None

    def snapshot(self) -> dict[str, list[float]]:
        """Cópia das janelas (apenas para testes)."""
        return {key: list(value) for key, value in self._windows.items()}


class MemoryCredentialStore(CredentialStoreProtocol):
    """Store de credenciais em memória — apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, Credentials] = {}
        self._prepared: set[str] = set()

    async def prepare(self, session_id: str) -> None:
        self._prepared.add(session_id)

    async def load(self, session_id: str) -> Credentials:
        return copy.deepcopy(self._store.get(session_id, {}))

    async def persist(self, session_id: str, credentials: Credentials) -> None:
        self._store[session_id] = copy.deepcopy(credentials)

    async def delete(self, session_id: str) -> bool:
        self._prepared.discard(session_id)
        return self._store.pop(session_id, None) is not None


class MemoryPairingArtifactStore(PairingArtifactStoreProtocol):
    """Store de artefatos de pareamento em memória — apenas para dev/test."""

    def __init__(self, renderer: Callable[[str], bytes] | None = None) -> None:
        self._renderer = renderer or (lambda code: code.encode("utf-8"))
        self._artifacts: dict[str, PairingArtifact] = {}

    async def save(self, session_id: str, pairing_code: str) -> str:
        reference = f"memory://{session_id}.png"
        self._artifacts[session_id] = PairingArtifact(
            session_id=session_id,
            reference=reference,
            content=self._renderer(pairing_code),
        )
        return reference

    async def load(self, session_id: str) -> PairingArtifact | None:
        return self._artifacts.get(session_id)

    async def exists(self, session_id: str) -> bool:
        return session_id in self._artifacts

    async def delete(self, session_id: str) -> bool:
        return self._artifacts.pop(session_id, None) is not None
