"""Settings do Dispatch Engine (envio único e em massa)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class DispatchSettings:
    """Configurações de envio.

    Attributes:
        bulk_pacing_seconds: Pausa incondicional entre destinatários do bulk
        bulk_retry_backoff_seconds: Espera antes da única nova tentativa
        media_fetch_timeout_seconds: Timeout do download de imagem remota
        media_max_size_bytes: Tamanho máximo aceito para imagem remota
    """

    bulk_pacing_seconds: float = 0.5
    bulk_retry_backoff_seconds: float = 2.0
    media_fetch_timeout_seconds: float = 30.0
    media_max_size_bytes: int = 16 * 1024 * 1024  # 16MB

    def validate(self) -> list[str]:
        """Valida configurações de envio.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.bulk_pacing_seconds < 0:
            errors.append("BULK_PACING_SECONDS deve ser >= 0")

        if self.bulk_retry_backoff_seconds < 0:
            errors.append("BULK_RETRY_BACKOFF_SECONDS deve ser >= 0")

        if self.media_fetch_timeout_seconds <= 0:
            errors.append("MEDIA_FETCH_TIMEOUT_SECONDS deve ser > 0")

        if self.media_max_size_bytes < 1:
            errors.append("MEDIA_MAX_SIZE_BYTES deve ser >= 1")

        return errors


def _load_dispatch_from_env() -> DispatchSettings:
    """Carrega DispatchSettings de variáveis de ambiente."""
    return DispatchSettings(
        bulk_pacing_seconds=float(os.getenv("BULK_PACING_SECONDS", "0.5")),
        bulk_retry_backoff_seconds=float(os.getenv("BULK_RETRY_BACKOFF_SECONDS", "2")),
        media_fetch_timeout_seconds=float(os.getenv("MEDIA_FETCH_TIMEOUT_SECONDS", "30")),
        media_max_size_bytes=int(
            os.getenv("MEDIA_MAX_SIZE_BYTES", str(16 * 1024 * 1024))
        ),
    )


@lru_cache(maxsize=1)
def get_dispatch_settings() -> DispatchSettings:
    """Retorna instância cacheada de DispatchSettings."""
    return _load_dispatch_from_env()
