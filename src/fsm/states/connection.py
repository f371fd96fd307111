"""
Estados canônicos de conexão de uma sessão de protocolo.

Uma sessão nasce UNINITIALIZED, aguarda pareamento, conecta e, ao cair,
entra em reconexão supervisionada até reconectar, sofrer logout ou
esgotar as tentativas.
"""

from enum import StrEnum


class ConnectionState(StrEnum):
    """
    Estados de conexão de uma sessão.

    Estados não-terminais:
        - UNINITIALIZED: Sessão registrada, handle ainda sem eventos
        - AWAITING_PAIRING: Desafio de pareamento (QR) disponível
        - CONNECTED: Autenticada e apta a enviar
        - DISCONNECTED_RETRY: Conexão caiu, reconexão em andamento

    Estados terminais:
        - LOGGED_OUT: Dispositivo desvinculado; credenciais removidas
        - EXHAUSTED: Limite de reconexões consecutivas atingido
    """

    UNINITIALIZED = "UNINITIALIZED"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    CONNECTED = "CONNECTED"
    DISCONNECTED_RETRY = "DISCONNECTED_RETRY"

    LOGGED_OUT = "LOGGED_OUT"
    EXHAUSTED = "EXHAUSTED"

    def __str__(self) -> str:
        return self.value


# Uma vez em estado terminal a sessão é descartada; nova chamada começa do zero
TERMINAL_STATES: frozenset[ConnectionState] = frozenset({
    ConnectionState.LOGGED_OUT,
    ConnectionState.EXHAUSTED,
})

DEFAULT_INITIAL_STATE: ConnectionState = ConnectionState.UNINITIALIZED


def is_terminal(state: ConnectionState) -> bool:
    """Verifica se o estado é terminal."""
    return state in TERMINAL_STATES


def is_valid_state(state: ConnectionState) -> bool:
    """Verifica se o valor é um estado válido do enum."""
    return isinstance(state, ConnectionState)
