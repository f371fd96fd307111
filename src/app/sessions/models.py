"""Modelo de sessão de protocolo.

Uma Session é o registro em memória de uma conexão lógica com a rede,
identificada pelo id escolhido pelo chamador. O Lifecycle Manager é o
único dono das sessões e dos handles que elas carregam.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fsm.states import ConnectionState

if TYPE_CHECKING:
    from app.protocols.protocol_client import ProtocolHandleProtocol
    from fsm.manager import FSMStateMachine


@dataclass(slots=True, eq=False)
class Session:
    """Sessão viva de um id.

    Atributos:
        session_id: Id opaco fornecido pelo chamador
        fsm: Máquina de estados da conexão
        handle: Handle de protocolo exclusivo (None entre reconexões)
        pairing_ref: Referência do último artefato de pareamento
        pairing_code: Último desafio recebido (em memória)
        reconnect_attempts: Tentativas consecutivas desde a última conexão
        supervisor: Task que consome os eventos do handle
        pairing_ready: Sinalizado quando um artefato é produzido
    """

    session_id: str
    fsm: FSMStateMachine
    handle: ProtocolHandleProtocol | None = None
    pairing_ref: str | None = None
    pairing_code: str | None = None
    reconnect_attempts: int = 0
    supervisor: asyncio.Task[None] | None = None
    pairing_ready: asyncio.Event = field(default_factory=asyncio.Event)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def state(self) -> ConnectionState:
        return self.fsm.current_state

    @property
    def is_connected(self) -> bool:
        return self.fsm.current_state == ConnectionState.CONNECTED and self.handle is not None

    @property
    def is_terminal(self) -> bool:
        return self.fsm.is_terminal

    @property
    def has_pairing_artifact(self) -> bool:
        return self.pairing_ref is not None

    def clear_pairing(self) -> None:
        """Esquece o artefato atual e rearma o sinal de espera."""
        self.pairing_ref = None
        self.pairing_code = None
        self.pairing_ready.clear()

    def to_status_dict(self) -> dict[str, Any]:
        """Resumo público da sessão (sem credenciais nem desafio)."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "reconnect_attempts": self.reconnect_attempts,
            "has_pairing_artifact": self.has_pairing_artifact,
        }
