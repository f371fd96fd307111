"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - file_credential_store: credenciais em disco (um diretório por sessão)
    - file_pairing_store: artefatos de pareamento PNG em disco
    - redis_rate_window_store: janelas de rate limit em Redis
    - memory_stores: janelas em memória e stores de dev/test
"""

from __future__ import annotations

from app.infra.stores.file_credential_store import FileCredentialStore
from app.infra.stores.file_pairing_store import FilePairingArtifactStore
from app.infra.stores.memory_stores import (
    MemoryCredentialStore,
    MemoryPairingArtifactStore,
    MemoryRateWindowStore,
)
from app.infra.stores.redis_rate_window_store import RedisRateWindowStore

__all__ = [
    # Disco
    "FileCredentialStore",
    "FilePairingArtifactStore",
    # Memória
    "MemoryCredentialStore",
    "MemoryPairingArtifactStore",
    "MemoryRateWindowStore",
    # Redis
    "RedisRateWindowStore",
]
