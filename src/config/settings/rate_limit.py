"""Settings do rate limiter por sessão.

Janela deslizante: no máximo `max_messages` envios admitidos em
`window_seconds` para cada sessão.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal, cast

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

RateWindowBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class RateLimitSettings:
    """Configurações de admissão de envios.

    Attributes:
        max_messages: Máximo de envios admitidos por janela
        window_seconds: Duração da janela deslizante
        backend: Backend das janelas (memory|redis)
    """

    max_messages: int = 10
    window_seconds: float = 600.0  # 10 min
    backend: RateWindowBackend = "memory"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de rate limit.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.max_messages < 1:
            errors.append("RATE_LIMIT_MAX_MESSAGES deve ser >= 1")

        if self.window_seconds <= 0:
            errors.append("RATE_LIMIT_WINDOW_SECONDS deve ser > 0")

        if self.backend not in ("memory", "redis"):
            errors.append(f"RATE_LIMIT_BACKEND inválido: {self.backend}")

        if self.backend == "redis" and not base.redis_url:
            errors.append("RATE_LIMIT_BACKEND=redis exige REDIS_URL")

        return errors


def _load_rate_limit_from_env() -> RateLimitSettings:
    """Carrega RateLimitSettings de variáveis de ambiente."""
    backend_str = os.getenv("RATE_LIMIT_BACKEND", "memory").lower()
    # Valor bruto: validate() acusa backend desconhecido
    backend = cast("RateWindowBackend", backend_str)
    return RateLimitSettings(
        max_messages=int(os.getenv("RATE_LIMIT_MAX_MESSAGES", "10")),
        window_seconds=float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "600")),
        backend=backend,
    )


@lru_cache(maxsize=1)
def get_rate_limit_settings() -> RateLimitSettings:
    """Retorna instância cacheada de RateLimitSettings."""
    return _load_rate_limit_from_env()
