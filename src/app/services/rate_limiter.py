"""Rate limiter de janela deslizante por sessão.

Responsabilidades:
- Admitir ou rejeitar um envio no instante `now`
- Podar a janela de forma preguiçosa (a cada verificação, sem timer)
- Calcular o tempo de espera exato quando a janela está cheia

Cada sessão tem janela independente; o acesso é serializado por id.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.sessions.locks import KeyedLockRegistry

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.protocols.rate_window_store import RateWindowStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 10
DEFAULT_WINDOW_SECONDS = 600.0


@dataclass(frozen=True, slots=True)
class AdmissionResult:
    """Decisão de admissão.

    Attributes:
        admitted: True se o envio pode prosseguir
        retry_after_seconds: Espera até a próxima vaga (0 quando admitido)
    """

    admitted: bool
    retry_after_seconds: int = 0

    @classmethod
    def admit(cls) -> AdmissionResult:
        return cls(admitted=True)

    @classmethod
    def reject(cls, retry_after_seconds: int) -> AdmissionResult:
        return cls(admitted=False, retry_after_seconds=retry_after_seconds)


class SlidingWindowRateLimiter:
    """Admissão de envios: no máximo `max_messages` por `window_seconds`.

    Args:
        store: Store das janelas (memória ou Redis)
        max_messages: Limite de envios admitidos por janela
        window_seconds: Duração da janela deslizante
        clock: Fonte de tempo em segundos (wall clock, compartilhável via Redis)
        locks: Registro de locks por id (um próprio se None)
    """

    __slots__ = ("_clock", "_locks", "_max_messages", "_store", "_window_seconds")

    def __init__(
        self,
        store: RateWindowStoreProtocol,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        if max_messages < 1:
            raise ValueError("max_messages deve ser >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds deve ser > 0")
        self._store = store
        self._max_messages = max_messages
        self._window_seconds = window_seconds
        self._clock = clock
        self._locks = locks or KeyedLockRegistry()

    @property
    def max_messages(self) -> int:
        return self._max_messages

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    async def try_admit(self, session_id: str, now: float | None = None) -> AdmissionResult:
        """Tenta admitir um envio para a sessão.

        Poda timestamps com idade >= janela. Se restarem menos que o limite,
        registra `now` e admite; caso contrário rejeita sem registrar nada.

        Args:
            session_id: Sessão do envio
            now: Instante da tentativa em segundos (clock() se None)

        Returns:
            AdmissionResult com retry_after_seconds >= 0 na rejeição
        """
        if now is None:
            now = self._clock()
        cutoff = now - self._window_seconds

        async with self._locks.hold(session_id):
            window = await self._store.prune_and_list(session_id, cutoff)
            if len(window) < self._max_messages:
                await self._store.append(session_id, now, ttl_seconds=self._window_seconds)
                return AdmissionResult.admit()

            oldest = window[0]
            retry_after = max(math.ceil(self._window_seconds - (now - oldest)), 0)

        logger.info(
            "rate_limit_rejected",
            extra={
                "session_id": session_id,
                "retry_after_seconds": retry_after,
                "window_count": len(window),
            },
        )
        return AdmissionResult.reject(retry_after)

    async def reset(self, session_id: str) -> bool:
        """Descarta a janela da sessão (teardown). Idempotente."""
        async with self._locks.hold(session_id):
            return await self._store.delete(session_id)
