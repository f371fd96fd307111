"""
Guards e invariantes para transições de estado de conexão.

Guards complementam VALID_TRANSITIONS com regras que dependem
apenas do par (origem, destino).
"""

from collections.abc import Callable

from fsm.states.connection import TERMINAL_STATES, ConnectionState

# Estados que aceitam transição reflexiva (QR renovado / nova queda em retry)
REFLEXIVE_STATES: frozenset[ConnectionState] = frozenset({
    ConnectionState.AWAITING_PAIRING,
    ConnectionState.DISCONNECTED_RETRY,
})


class GuardResult:
    """
    Resultado da avaliação de um guard.

    Attributes:
        allowed: Se a transição é permitida
        reason: Motivo do bloqueio (se allowed=False)
    """

    __slots__ = ("allowed", "reason")

    def __init__(self, allowed: bool, reason: str | None = None) -> None:
        self.allowed = allowed
        self.reason = reason

    @classmethod
    def allow(cls) -> "GuardResult":
        """Cria resultado permitindo a transição."""
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        """Cria resultado negando a transição."""
        return cls(allowed=False, reason=reason)


Guard = Callable[[ConnectionState, ConnectionState], GuardResult]


def guard_valid_state(
    from_state: ConnectionState,
    to_state: ConnectionState,
) -> GuardResult:
    """Guard: ambos os estados precisam ser ConnectionState."""
    if not isinstance(from_state, ConnectionState):
        return GuardResult.deny(f"Estado de origem inválido: {from_state}")

    if not isinstance(to_state, ConnectionState):
        return GuardResult.deny(f"Estado de destino inválido: {to_state}")

    return GuardResult.allow()


def guard_terminal_state(
    from_state: ConnectionState,
    to_state: ConnectionState,
) -> GuardResult:
    """Guard: estados terminais não permitem saída."""
    if from_state in TERMINAL_STATES:
        return GuardResult.deny(
            f"Estado {from_state.name} é terminal, não permite transição"
        )
    return GuardResult.allow()


def guard_same_state(
    from_state: ConnectionState,
    to_state: ConnectionState,
) -> GuardResult:
    """
    Guard: transição reflexiva só para AWAITING_PAIRING e DISCONNECTED_RETRY.

    CONNECTED → CONNECTED indicaria evento duplicado do handle e é negado.
    """
    if from_state == to_state and from_state not in REFLEXIVE_STATES:
        return GuardResult.deny(
            f"Transição reflexiva não permitida: {from_state.name} → {to_state.name}"
        )

    return GuardResult.allow()


# Todos devem retornar allow() para a transição prosseguir
DEFAULT_GUARDS: list[Guard] = [
    guard_valid_state,
    guard_terminal_state,
    guard_same_state,
]


def evaluate_guards(
    from_state: ConnectionState,
    to_state: ConnectionState,
    guards: list[Guard] | None = None,
) -> GuardResult:
    """
    Avalia todos os guards para uma transição.

    Returns:
        GuardResult do primeiro guard que negar, ou allow() se todos passarem
    """
    guards_to_apply = guards if guards is not None else DEFAULT_GUARDS

    for guard in guards_to_apply:
        result = guard(from_state, to_state)
        if not result.allowed:
            return result

    return GuardResult.allow()
