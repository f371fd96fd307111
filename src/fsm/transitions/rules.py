"""
Regras de transição válidas entre estados de conexão.

Pareamento e conexão não têm ordem garantida pela camada de protocolo:
com credenciais reaproveitadas a sessão vai direto de UNINITIALIZED
(ou DISCONNECTED_RETRY) para CONNECTED.
"""

from fsm.states.connection import TERMINAL_STATES, ConnectionState

TransitionMap = dict[ConnectionState, frozenset[ConnectionState]]

# Chave: estado de origem
# Valor: conjunto de estados de destino permitidos
VALID_TRANSITIONS: TransitionMap = {
    ConnectionState.UNINITIALIZED: frozenset({
        ConnectionState.AWAITING_PAIRING,
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED_RETRY,
        ConnectionState.LOGGED_OUT,
    }),

    # AWAITING_PAIRING: QR renovado mantém o estado
    ConnectionState.AWAITING_PAIRING: frozenset({
        ConnectionState.AWAITING_PAIRING,
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED_RETRY,
        ConnectionState.LOGGED_OUT,
    }),

    ConnectionState.CONNECTED: frozenset({
        ConnectionState.DISCONNECTED_RETRY,
        ConnectionState.LOGGED_OUT,
    }),

    # DISCONNECTED_RETRY: nova queda antes de qualquer evento mantém o estado
    ConnectionState.DISCONNECTED_RETRY: frozenset({
        ConnectionState.DISCONNECTED_RETRY,
        ConnectionState.AWAITING_PAIRING,
        ConnectionState.CONNECTED,
        ConnectionState.LOGGED_OUT,
        ConnectionState.EXHAUSTED,
    }),

    ConnectionState.LOGGED_OUT: frozenset(),
    ConnectionState.EXHAUSTED: frozenset(),
}


def get_valid_targets(state: ConnectionState) -> frozenset[ConnectionState]:
    """Retorna os estados de destino válidos (vazio se terminal)."""
    return VALID_TRANSITIONS.get(state, frozenset())


def is_transition_valid(from_state: ConnectionState, to_state: ConnectionState) -> bool:
    """
    Verifica se uma transição é válida segundo as regras definidas.

    Args:
        from_state: Estado de origem
        to_state: Estado de destino

    Returns:
        True se a transição é permitida, False caso contrário
    """
    if from_state in TERMINAL_STATES:
        return False

    return to_state in get_valid_targets(from_state)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todos os estados do enum estão no mapa
    - Estados terminais têm conjunto vazio
    - Todo estado não-terminal alcança algum estado terminal

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in ConnectionState:
        if state not in VALID_TRANSITIONS:
            errors.append(f"Estado {state.name} ausente em VALID_TRANSITIONS")

    for state in TERMINAL_STATES:
        targets = VALID_TRANSITIONS.get(state, frozenset())
        if targets:
            errors.append(
                f"Estado terminal {state.name} não deveria ter transições: {targets}"
            )

    for from_state, targets in VALID_TRANSITIONS.items():
        if from_state in TERMINAL_STATES:
            continue
        if not targets & TERMINAL_STATES and not any(
            VALID_TRANSITIONS.get(t, frozenset()) & TERMINAL_STATES for t in targets
        ):
            errors.append(f"Estado {from_state.name} não alcança estado terminal")

    return errors
