"""Settings de ciclo de vida das sessões de protocolo.

Diretórios de credenciais/QR, espera de pareamento e política de reconexão.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal, cast

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

ProtocolBackend = Literal["mock"]

_VALID_BACKENDS = ("mock",)


@dataclass(frozen=True)
class SessionSettings:
    """Configurações do Lifecycle Manager e do Pairing Provider.

    Attributes:
        auth_dir: Diretório raiz das credenciais (um subdiretório por sessão)
        qr_dir: Diretório dos artefatos de pareamento (um PNG por sessão)
        protocol_backend: Implementação do cliente de protocolo
        pairing_timeout_seconds: Espera máxima pelo artefato de pareamento
        pairing_poll_interval_seconds: Intervalo de reverificação do artefato
        reconnect_max_attempts: Tentativas consecutivas antes de EXHAUSTED
        reconnect_base_delay_seconds: Backoff inicial da reconexão
        reconnect_max_delay_seconds: Teto do backoff exponencial
    """

    auth_dir: str = "auth"
    qr_dir: str = "qr_codes"
    protocol_backend: ProtocolBackend = "mock"

    pairing_timeout_seconds: float = 10.0
    pairing_poll_interval_seconds: float = 0.5

    reconnect_max_attempts: int = 5
    reconnect_base_delay_seconds: float = 1.0
    reconnect_max_delay_seconds: float = 60.0

    def reconnect_delay(self, attempt: int) -> float:
        """Backoff exponencial limitado para a tentativa `attempt` (1-based)."""
        exponent = max(attempt - 1, 0)
        return min(self.reconnect_base_delay_seconds * (2**exponent), self.reconnect_max_delay_seconds)

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de sessão.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not self.auth_dir:
            errors.append("AUTH_DIR não pode ser vazio")

        if not self.qr_dir:
            errors.append("QR_DIR não pode ser vazio")

        if self.protocol_backend not in _VALID_BACKENDS:
            errors.append(f"PROTOCOL_BACKEND inválido: {self.protocol_backend}")

        if self.protocol_backend == "mock" and base.is_production:
            errors.append("PROTOCOL_BACKEND=mock proibido em production")

        if self.pairing_timeout_seconds <= 0:
            errors.append("PAIRING_TIMEOUT_SECONDS deve ser > 0")

        if self.pairing_poll_interval_seconds <= 0:
            errors.append("PAIRING_POLL_INTERVAL_SECONDS deve ser > 0")

        if self.reconnect_max_attempts < 1:
            errors.append("RECONNECT_MAX_ATTEMPTS deve ser >= 1")

        if self.reconnect_base_delay_seconds < 0:
            errors.append("RECONNECT_BASE_DELAY_SECONDS deve ser >= 0")

        if self.reconnect_max_delay_seconds < self.reconnect_base_delay_seconds:
            errors.append("RECONNECT_MAX_DELAY_SECONDS deve ser >= RECONNECT_BASE_DELAY_SECONDS")

        return errors


def _load_session_from_env() -> SessionSettings:
    """Carrega SessionSettings de variáveis de ambiente."""
    backend_str = os.getenv("PROTOCOL_BACKEND", "mock").lower()
    # Valor bruto: validate() acusa backend desconhecido
    backend = cast("ProtocolBackend", backend_str)
    return SessionSettings(
        auth_dir=os.getenv("AUTH_DIR", "auth"),
        qr_dir=os.getenv("QR_DIR", "qr_codes"),
        protocol_backend=backend,
        pairing_timeout_seconds=float(os.getenv("PAIRING_TIMEOUT_SECONDS", "10")),
        pairing_poll_interval_seconds=float(os.getenv("PAIRING_POLL_INTERVAL_SECONDS", "0.5")),
        reconnect_max_attempts=int(os.getenv("RECONNECT_MAX_ATTEMPTS", "5")),
        reconnect_base_delay_seconds=float(os.getenv("RECONNECT_BASE_DELAY_SECONDS", "1")),
        reconnect_max_delay_seconds=float(os.getenv("RECONNECT_MAX_DELAY_SECONDS", "60")),
    )


@lru_cache(maxsize=1)
def get_session_settings() -> SessionSettings:
    """Retorna instância cacheada de SessionSettings."""
    return _load_session_from_env()
