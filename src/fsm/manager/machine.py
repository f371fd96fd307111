"""
Máquina de estados (FSMStateMachine) da conexão de uma sessão.

Controla transições de ConnectionState e mantém histórico recente
para diagnóstico. O histórico é limitado porque uma sessão pode
alternar entre pareamento e reconexão indefinidamente.
"""

from collections import deque
from typing import Any

from fsm.rules.guards import GuardResult, evaluate_guards
from fsm.states.connection import (
    DEFAULT_INITIAL_STATE,
    ConnectionState,
    is_terminal,
)
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import StateTransition, TransitionResult

DEFAULT_HISTORY_LIMIT = 50


class FSMStateMachine:
    """
    Máquina de estados de conexão.

    Attributes:
        current_state: Estado atual da máquina
        history: Transições mais recentes (até history_limit)
    """

    __slots__ = ("_current_state", "_history", "_session_id")

    def __init__(
        self,
        initial_state: ConnectionState | None = None,
        session_id: str = "",
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """
        Inicializa a máquina de estados.

        Args:
            initial_state: Estado inicial (usa DEFAULT_INITIAL_STATE se None)
            session_id: Identificador da sessão para logs
            history_limit: Quantidade máxima de transições mantidas
        """
        self._current_state = initial_state or DEFAULT_INITIAL_STATE
        self._history: deque[StateTransition] = deque(maxlen=history_limit)
        self._session_id = session_id

    @property
    def current_state(self) -> ConnectionState:
        """Estado atual da máquina."""
        return self._current_state

    @property
    def history(self) -> list[StateTransition]:
        """Histórico de transições (cópia para evitar mutação externa)."""
        return list(self._history)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self._current_state)

    def can_transition_to(self, target: ConnectionState) -> bool:
        """Verifica se pode transitar para o estado alvo."""
        if not is_transition_valid(self._current_state, target):
            return False
        return evaluate_guards(self._current_state, target).allowed

    def get_valid_targets(self) -> frozenset[ConnectionState]:
        return get_valid_targets(self._current_state)

    def transition(
        self,
        target: ConnectionState,
        trigger: str,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Tenta realizar uma transição de estado.

        Args:
            target: Estado de destino
            trigger: Evento que originou a transição
            metadata: Dados adicionais para logs

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        if not is_transition_valid(self._current_state, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_state.name} → {target.name}"
                ),
            )

        guard_result: GuardResult = evaluate_guards(self._current_state, target)
        if not guard_result.allowed:
            return TransitionResult(
                success=False,
                error_reason=guard_result.reason,
            )

        transition = StateTransition(
            from_state=self._current_state,
            to_state=target,
            trigger=trigger,
            metadata=metadata or {},
        )

        self._current_state = target
        self._history.append(transition)

        return TransitionResult(success=True, transition=transition)

    def get_state_summary(self) -> dict[str, Any]:
        """Retorna resumo do estado atual para observability."""
        return {
            "session_id": self._session_id,
            "current_state": self._current_state.name,
            "is_terminal": self.is_terminal,
            "transition_count": len(self._history),
            "valid_targets": sorted(s.name for s in self.get_valid_targets()),
        }


def create_fsm(
    session_id: str,
    initial_state: ConnectionState | None = None,
) -> FSMStateMachine:
    """Factory function para criar uma FSM de conexão."""
    return FSMStateMachine(
        initial_state=initial_state,
        session_id=session_id,
    )


INITIAL_STATES = frozenset({DEFAULT_INITIAL_STATE})
