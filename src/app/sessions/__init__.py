"""Módulo de sessões de protocolo.

Exporta modelo, gerenciador de ciclo de vida e Pairing Provider.
"""

from app.sessions.locks import KeyedLockRegistry
from app.sessions.manager import SessionLifecycleManager
from app.sessions.models import Session
from app.sessions.pairing import PairingProvider, PairingResult

__all__ = [
    "KeyedLockRegistry",
    "PairingProvider",
    "PairingResult",
    "Session",
    "SessionLifecycleManager",
]
