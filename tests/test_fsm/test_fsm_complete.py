"""
Testes abrangentes para o módulo FSM de conexão.

- Testamos comportamento e contrato público
- Um teste cobre múltiplos componentes relacionados
- Foco em cenários válidos + inválidos + bordas
"""

from datetime import datetime

import pytest

from fsm import (
    DEFAULT_INITIAL_STATE,
    INITIAL_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ConnectionState,
    FSMStateMachine,
    GuardResult,
    StateTransition,
    TransitionResult,
    create_fsm,
    evaluate_guards,
    get_valid_targets,
    is_terminal,
    is_transition_valid,
    is_valid_state,
    validate_transition_map,
)
from fsm.manager.machine import DEFAULT_HISTORY_LIMIT
from fsm.rules.guards import (
    DEFAULT_GUARDS,
    REFLEXIVE_STATES,
    guard_same_state,
    guard_terminal_state,
    guard_valid_state,
)
from fsm.states.connection import ConnectionState as DirectConnectionState


class TestConnectionStateAndTerminals:
    """Testa ConnectionState, TERMINAL_STATES, is_terminal e is_valid_state."""

    def test_enum_has_6_states_and_2_terminals(self) -> None:
        assert len(ConnectionState) == 6
        assert TERMINAL_STATES == {ConnectionState.LOGGED_OUT, ConnectionState.EXHAUSTED}

        for state in ConnectionState:
            assert is_valid_state(state)
            assert is_terminal(state) == (state in TERMINAL_STATES)

        assert is_valid_state("CONNECTED") is False  # type: ignore[arg-type]

    def test_direct_import_matches_reexport(self) -> None:
        assert DirectConnectionState is ConnectionState

    def test_values_are_explicit_strings(self) -> None:
        for state in ConnectionState:
            assert state.value == state.name
            assert str(state) == state.value

    def test_default_initial_state(self) -> None:
        assert DEFAULT_INITIAL_STATE == ConnectionState.UNINITIALIZED
        assert INITIAL_STATES == {ConnectionState.UNINITIALIZED}


class TestValidTransitionsAndRules:
    """Testa VALID_TRANSITIONS, get_valid_targets e is_transition_valid."""

    def test_map_is_complete_and_terminals_have_no_exits(self) -> None:
        assert set(VALID_TRANSITIONS) == set(ConnectionState)
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == frozenset()
        assert validate_transition_map() == []

    def test_get_valid_targets_and_is_transition_valid_consistency(self) -> None:
        for from_state in ConnectionState:
            targets = get_valid_targets(from_state)
            for to_state in ConnectionState:
                assert is_transition_valid(from_state, to_state) == (to_state in targets)

    @pytest.mark.parametrize(
        ("from_state", "to_state"),
        [
            (ConnectionState.UNINITIALIZED, ConnectionState.AWAITING_PAIRING),
            (ConnectionState.UNINITIALIZED, ConnectionState.CONNECTED),
            (ConnectionState.AWAITING_PAIRING, ConnectionState.AWAITING_PAIRING),
            (ConnectionState.AWAITING_PAIRING, ConnectionState.CONNECTED),
            (ConnectionState.CONNECTED, ConnectionState.DISCONNECTED_RETRY),
            (ConnectionState.CONNECTED, ConnectionState.LOGGED_OUT),
            (ConnectionState.DISCONNECTED_RETRY, ConnectionState.CONNECTED),
            (ConnectionState.DISCONNECTED_RETRY, ConnectionState.EXHAUSTED),
        ],
    )
    def test_expected_paths_are_valid(
        self, from_state: ConnectionState, to_state: ConnectionState
    ) -> None:
        assert is_transition_valid(from_state, to_state)

    @pytest.mark.parametrize(
        ("from_state", "to_state"),
        [
            (ConnectionState.CONNECTED, ConnectionState.AWAITING_PAIRING),
            (ConnectionState.CONNECTED, ConnectionState.EXHAUSTED),
            (ConnectionState.UNINITIALIZED, ConnectionState.EXHAUSTED),
            (ConnectionState.LOGGED_OUT, ConnectionState.UNINITIALIZED),
            (ConnectionState.EXHAUSTED, ConnectionState.CONNECTED),
        ],
    )
    def test_forbidden_paths_are_invalid(
        self, from_state: ConnectionState, to_state: ConnectionState
    ) -> None:
        assert not is_transition_valid(from_state, to_state)


class TestGuardsAndEvaluation:
    """Testa GuardResult, guards individuais e evaluate_guards."""

    def test_guard_result_creation(self) -> None:
        allowed = GuardResult.allow()
        denied = GuardResult.deny("motivo")

        assert allowed.allowed is True
        assert allowed.reason is None
        assert denied.allowed is False
        assert denied.reason == "motivo"

    def test_individual_guards(self) -> None:
        assert not guard_terminal_state(ConnectionState.LOGGED_OUT, ConnectionState.CONNECTED).allowed
        assert guard_terminal_state(ConnectionState.CONNECTED, ConnectionState.LOGGED_OUT).allowed

        assert not guard_same_state(ConnectionState.CONNECTED, ConnectionState.CONNECTED).allowed
        for state in REFLEXIVE_STATES:
            assert guard_same_state(state, state).allowed

        assert not guard_valid_state("X", ConnectionState.CONNECTED).allowed  # type: ignore[arg-type]
        assert not guard_valid_state(ConnectionState.CONNECTED, "X").allowed  # type: ignore[arg-type]

    def test_evaluate_guards_returns_first_denial(self) -> None:
        assert len(DEFAULT_GUARDS) == 3
        result = evaluate_guards(ConnectionState.EXHAUSTED, ConnectionState.EXHAUSTED)

        assert result.allowed is False
        assert "terminal" in (result.reason or "")
        assert evaluate_guards(ConnectionState.CONNECTED, ConnectionState.CONNECTED, guards=[]).allowed


class TestStateTransitionAndTransitionResult:
    """Testa StateTransition e TransitionResult."""

    def test_state_transition_log_dict(self) -> None:
        transition = StateTransition(
            from_state=ConnectionState.CONNECTED,
            to_state=ConnectionState.DISCONNECTED_RETRY,
            trigger="closed",
            metadata={"reason": "connection_lost", "attempt": 1},
        )

        log = transition.to_log_dict()

        assert log["from_state"] == "CONNECTED"
        assert log["to_state"] == "DISCONNECTED_RETRY"
        assert log["metadata"] == {"reason": "connection_lost", "attempt": 1}
        assert isinstance(transition.timestamp, datetime)
        assert transition.timestamp.tzinfo is not None

    def test_empty_trigger_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            StateTransition(
                from_state=ConnectionState.UNINITIALIZED,
                to_state=ConnectionState.CONNECTED,
                trigger="  ",
            )

    def test_transition_result_consistency(self) -> None:
        with pytest.raises(ValueError):
            TransitionResult(success=True)
        with pytest.raises(ValueError):
            TransitionResult(success=False)
        assert TransitionResult(success=False, error_reason="x").transition is None


class TestFSMStateMachineFlow:
    """Testa a máquina com o ciclo de vida completo de uma sessão."""

    def test_create_fsm_starts_uninitialized(self) -> None:
        machine = create_fsm("loja")

        assert machine.current_state == ConnectionState.UNINITIALIZED
        assert machine.session_id == "loja"
        assert machine.history == []
        assert machine.is_terminal is False

    def test_pairing_connect_drop_reconnect_logout(self) -> None:
        machine = create_fsm("loja")
        path = [
            (ConnectionState.AWAITING_PAIRING, "pairing_challenge"),
            (ConnectionState.AWAITING_PAIRING, "pairing_challenge"),
            (ConnectionState.CONNECTED, "connected"),
            (ConnectionState.DISCONNECTED_RETRY, "closed"),
            (ConnectionState.DISCONNECTED_RETRY, "reconnect_failed"),
            (ConnectionState.CONNECTED, "connected"),
            (ConnectionState.LOGGED_OUT, "closed"),
        ]

        for target, trigger in path:
            result = machine.transition(target, trigger)
            assert result.success, result.error_reason

        assert machine.is_terminal
        assert [t.to_state for t in machine.history] == [target for target, _ in path]

    def test_terminal_state_blocks_all_transitions(self) -> None:
        machine = create_fsm("loja", initial_state=ConnectionState.DISCONNECTED_RETRY)
        assert machine.transition(ConnectionState.EXHAUSTED, "attempts_exhausted").success

        for state in ConnectionState:
            assert machine.can_transition_to(state) is False
            assert machine.transition(state, "late_event").success is False
        assert machine.current_state == ConnectionState.EXHAUSTED

    def test_duplicate_connected_is_rejected(self) -> None:
        machine = create_fsm("loja", initial_state=ConnectionState.CONNECTED)

        result = machine.transition(ConnectionState.CONNECTED, "connected")

        assert result.success is False
        assert machine.history == []

    def test_history_is_bounded_and_copied(self) -> None:
        machine = FSMStateMachine(
            initial_state=ConnectionState.AWAITING_PAIRING,
            session_id="loja",
            history_limit=3,
        )
        for _ in range(DEFAULT_HISTORY_LIMIT):
            machine.transition(ConnectionState.AWAITING_PAIRING, "pairing_challenge")

        history = machine.history
        history.clear()

        assert len(machine.history) == 3

    def test_state_summary(self) -> None:
        machine = create_fsm("loja")
        machine.transition(ConnectionState.CONNECTED, "connected")

        summary = machine.get_state_summary()

        assert summary == {
            "session_id": "loja",
            "current_state": "CONNECTED",
            "is_terminal": False,
            "transition_count": 1,
            "valid_targets": ["DISCONNECTED_RETRY", "LOGGED_OUT"],
        }
