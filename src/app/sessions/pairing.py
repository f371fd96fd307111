"""Pairing Provider: espera limitada pelo artefato de pareamento.

Adaptador de leitura/espera sobre o Lifecycle Manager. Não muda estado
além do que ensure_session já produz.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.observability import record_latency
from utils.errors import PairingTimeoutError

if TYPE_CHECKING:
    from app.protocols.pairing_store import PairingArtifact, PairingArtifactStoreProtocol
    from app.sessions.manager import SessionLifecycleManager

logger = logging.getLogger(__name__)

DEFAULT_PAIRING_TIMEOUT_SECONDS = 10.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.5


@dataclass(frozen=True, slots=True)
class PairingResult:
    """Resultado da espera: sessão já conectada ou artefato pronto."""

    already_connected: bool
    artifact: PairingArtifact | None = None

    @classmethod
    def connected(cls) -> PairingResult:
        return cls(already_connected=True)

    @classmethod
    def ready(cls, artifact: PairingArtifact) -> PairingResult:
        return cls(already_connected=False, artifact=artifact)


class PairingProvider:
    """Entrega o artefato de pareamento de uma sessão.

    A espera é acordada pelo sinal da sessão (artefato produzido ou
    conexão estabelecida) e também reverifica o store a cada
    `poll_interval_seconds`. O limite total é `timeout`.
    """

    def __init__(
        self,
        manager: SessionLifecycleManager,
        pairing_store: PairingArtifactStoreProtocol,
        timeout_seconds: float = DEFAULT_PAIRING_TIMEOUT_SECONDS,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self._manager = manager
        self._store = pairing_store
        self._timeout_seconds = timeout_seconds
        self._poll_interval = poll_interval_seconds

    async def get_pairing_artifact(
        self,
        session_id: str,
        timeout: float | None = None,
    ) -> PairingResult:
        """Obtém o artefato de pareamento, criando a sessão se preciso.

        Args:
            session_id: Id da sessão
            timeout: Espera máxima em segundos (padrão configurado se None)

        Returns:
            PairingResult.connected() se a sessão já está conectada,
            senão PairingResult.ready(artifact)

        Raises:
            PairingTimeoutError: artefato não ficou pronto a tempo
        """
        if self._manager.is_connected(session_id):
            return PairingResult.connected()

        await self._manager.ensure_session(session_id)

        limit = self._timeout_seconds if timeout is None else timeout
        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(self._wait_for_artifact(session_id), timeout=limit)
        except TimeoutError as exc:
            logger.warning(
                "pairing_artifact_timeout",
                extra={"session_id": session_id, "timeout_seconds": limit},
            )
            raise PairingTimeoutError(session_id, limit) from exc
        finally:
            record_latency("pairing", "wait_artifact", (time.perf_counter() - start) * 1000)

        logger.debug(
            "pairing_artifact_served",
            extra={"session_id": session_id, "already_connected": result.already_connected},
        )
        return result

    async def _wait_for_artifact(self, session_id: str) -> PairingResult:
        while True:
            session = self._manager.get_session(session_id)
            if session is None:
                # Sessão removida durante a espera (logout/esgotada)
                await asyncio.sleep(self._poll_interval)
                continue

            if session.is_connected:
                return PairingResult.connected()

            if session.has_pairing_artifact:
                artifact = await self._store.load(session_id)
                if artifact is not None:
                    return PairingResult.ready(artifact)

            if session.pairing_ready.is_set():
                await asyncio.sleep(self._poll_interval)
                continue

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(session.pairing_ready.wait(), timeout=self._poll_interval)
