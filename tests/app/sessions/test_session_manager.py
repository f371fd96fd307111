"""Testes do SessionLifecycleManager.

Testa:
    - Criação única sob concorrência
    - Eventos de pareamento, conexão e credenciais
    - Logout (limpeza destrutiva, idempotente)
    - Reconexão com backoff limitado e esgotamento
    - Falhas de abertura propagadas ao chamador
    - Falhas de colaboradores e do stream de eventos sem perder a sessão
    - Shutdown concorrente com aberturas em andamento
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from app.infra.stores.memory_stores import (
    MemoryCredentialStore,
    MemoryPairingArtifactStore,
    MemoryRateWindowStore,
)
from app.protocols.protocol_client import DisconnectReason, LifecycleEvent
from app.services.rate_limiter import SlidingWindowRateLimiter
from app.sessions.manager import SessionLifecycleManager
from config.settings import SessionSettings
from fsm import ConnectionState
from tests.fakes.fake_protocol import FakeProtocolFactory, RecordingSleep, settle, wait_until
from utils.errors import InvalidRequestError, SessionNotReadyError

# ──────────────────────────────────────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def factory() -> FakeProtocolFactory:
    return FakeProtocolFactory()


@pytest.fixture
def credential_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def pairing_store() -> MemoryPairingArtifactStore:
    return MemoryPairingArtifactStore()


@pytest.fixture
def window_store() -> MemoryRateWindowStore:
    return MemoryRateWindowStore()


@pytest.fixture
def limiter(window_store: MemoryRateWindowStore) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(window_store, max_messages=10, window_seconds=600)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def manager(
    factory: FakeProtocolFactory,
    credential_store: MemoryCredentialStore,
    pairing_store: MemoryPairingArtifactStore,
    limiter: SlidingWindowRateLimiter,
    sleep: RecordingSleep,
):
    settings = SessionSettings(
        reconnect_max_attempts=3,
        reconnect_base_delay_seconds=1.0,
        reconnect_max_delay_seconds=4.0,
    )
    manager = SessionLifecycleManager(
        factory,
        credential_store,
        pairing_store,
        limiter,
        settings=settings,
        sleep=sleep,
    )
    yield manager
    await manager.shutdown()


# ──────────────────────────────────────────────────────────────────────────────
# Testes: Criação
# ──────────────────────────────────────────────────────────────────────────────


class TestEnsureSession:
    @pytest.mark.asyncio
    async def test_concurrent_calls_create_single_handle(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        factory.open_delay = 0.01

        sessions = await asyncio.gather(*(manager.ensure_session("loja") for _ in range(10)))

        assert factory.open_calls == 1
        assert all(s is sessions[0] for s in sessions)
        assert manager.state_of("loja") == ConnectionState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_open_receives_credentials_version_and_browser(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
    ) -> None:
        await credential_store.persist("loja", {"registered": True})

        await manager.ensure_session("loja")

        options = factory.options[0]
        assert options.session_id == "loja"
        assert options.credentials == {"registered": True}
        assert options.version.version == (2, 3000, 1)
        assert options.browser == ("MultiBot", "Chrome", "1.0")

    @pytest.mark.asyncio
    async def test_open_failure_propagates_and_registers_nothing(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        factory.open_errors.append(RuntimeError("cannot open"))

        with pytest.raises(RuntimeError, match="cannot open"):
            await manager.ensure_session("loja")

        assert manager.get_session("loja") is None
        # Falha não afeta a próxima tentativa
        assert await manager.ensure_session("loja") is manager.get_session("loja")

    @pytest.mark.asyncio
    async def test_credential_prepare_failure_propagates(
        self, manager: SessionLifecycleManager, credential_store: MemoryCredentialStore
    ) -> None:
        credential_store.prepare = AsyncMock(side_effect=OSError("read-only"))  # type: ignore[method-assign]

        with pytest.raises(OSError, match="read-only"):
            await manager.ensure_session("loja")

        assert manager.list_sessions() == []

    @pytest.mark.asyncio
    async def test_empty_session_id_is_rejected(self, manager: SessionLifecycleManager) -> None:
        with pytest.raises(InvalidRequestError):
            await manager.ensure_session("  ")


# ──────────────────────────────────────────────────────────────────────────────
# Testes: Eventos
# ──────────────────────────────────────────────────────────────────────────────


class TestLifecycleEvents:
    @pytest.mark.asyncio
    async def test_pairing_challenge_stores_artifact(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        pairing_store: MemoryPairingArtifactStore,
    ) -> None:
        session = await manager.ensure_session("loja")

        factory.last_handle.emit_pairing("qr-1")
        await wait_until(lambda: session.has_pairing_artifact)

        assert session.state == ConnectionState.AWAITING_PAIRING
        assert session.pairing_code == "qr-1"
        assert session.pairing_ready.is_set()
        artifact = await pairing_store.load("loja")
        assert artifact is not None
        assert artifact.content == b"qr-1"

    @pytest.mark.asyncio
    async def test_refreshed_challenge_replaces_artifact(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        pairing_store: MemoryPairingArtifactStore,
    ) -> None:
        session = await manager.ensure_session("loja")

        factory.last_handle.emit_pairing("qr-1")
        factory.last_handle.emit_pairing("qr-2")
        await wait_until(lambda: session.pairing_code == "qr-2")

        artifact = await pairing_store.load("loja")
        assert artifact is not None
        assert artifact.content == b"qr-2"

    @pytest.mark.asyncio
    async def test_connected_without_prior_pairing(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        session = await manager.ensure_session("loja")

        factory.last_handle.emit_connected()
        await wait_until(lambda: session.is_connected)

        assert manager.is_connected("loja")
        assert session.has_pairing_artifact is False
        assert [t.to_state for t in session.fsm.history] == [ConnectionState.CONNECTED]

    @pytest.mark.asyncio
    async def test_connected_after_pairing_drops_stale_artifact_reference(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        session = await manager.ensure_session("loja")

        factory.last_handle.emit_pairing("qr-1")
        factory.last_handle.emit_connected()
        await wait_until(lambda: session.is_connected)

        assert session.pairing_ref is None
        assert session.pairing_ready.is_set()

    @pytest.mark.asyncio
    async def test_credentials_update_is_persisted(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
    ) -> None:
        await manager.ensure_session("loja")

        factory.last_handle.emit(LifecycleEvent.credentials_updated({"registered": True, "me": "x"}))
        await settle()

        assert await credential_store.load("loja") == {"registered": True, "me": "x"}

    @pytest.mark.asyncio
    async def test_credential_persist_failure_keeps_session_connected(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
    ) -> None:
        persist = credential_store.persist
        attempts: list[dict] = []

        async def flaky_persist(session_id: str, credentials: dict) -> None:
            attempts.append(credentials)
            if len(attempts) == 1:
                raise OSError("disk full")
            await persist(session_id, credentials)

        credential_store.persist = flaky_persist  # type: ignore[method-assign]
        session = await manager.ensure_session("loja")
        handle = factory.last_handle
        handle.emit_connected()
        await wait_until(lambda: session.is_connected)

        handle.emit(LifecycleEvent.credentials_updated({"registered": True, "v": 1}))
        handle.emit(LifecycleEvent.credentials_updated({"registered": True, "v": 2}))
        await wait_until(lambda: len(attempts) == 2)

        assert manager.get_session("loja") is session
        assert session.is_connected
        assert handle.closed is False
        assert factory.open_calls == 1
        assert await credential_store.load("loja") == {"registered": True, "v": 2}

    @pytest.mark.asyncio
    async def test_failed_refresh_drops_expired_artifact(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        pairing_store: MemoryPairingArtifactStore,
    ) -> None:
        save = pairing_store.save

        async def failing_save(session_id: str, pairing_code: str) -> str:
            if pairing_code == "qr-2":
                raise OSError("qr dir unavailable")
            return await save(session_id, pairing_code)

        pairing_store.save = failing_save  # type: ignore[method-assign]
        session = await manager.ensure_session("loja")
        handle = factory.last_handle
        handle.emit_pairing("qr-1")
        await wait_until(lambda: session.pairing_code == "qr-1")

        handle.emit_pairing("qr-2")
        await wait_until(lambda: not session.has_pairing_artifact)

        assert session.state == ConnectionState.AWAITING_PAIRING
        assert session.pairing_code is None
        assert session.pairing_ready.is_set() is False
        assert await pairing_store.exists("loja") is False

        handle.emit_pairing("qr-3")
        await wait_until(lambda: session.pairing_code == "qr-3")

        artifact = await pairing_store.load("loja")
        assert artifact is not None
        assert artifact.content == b"qr-3"

    @pytest.mark.asyncio
    async def test_pairing_after_connected_is_ignored(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        session = await manager.ensure_session("loja")

        factory.last_handle.emit_connected()
        factory.last_handle.emit_pairing("late")
        await settle()

        assert session.state == ConnectionState.CONNECTED
        assert session.pairing_code is None


# ──────────────────────────────────────────────────────────────────────────────
# Testes: Logout e teardown
# ──────────────────────────────────────────────────────────────────────────────


class TestLogout:
    @pytest.mark.asyncio
    async def test_logged_out_close_performs_full_teardown(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
        pairing_store: MemoryPairingArtifactStore,
        limiter: SlidingWindowRateLimiter,
        window_store: MemoryRateWindowStore,
    ) -> None:
        await credential_store.persist("loja", {"registered": True})
        session = await manager.ensure_session("loja")
        handle = factory.last_handle
        handle.emit_pairing("qr-1")
        handle.emit_connected()
        await wait_until(lambda: session.is_connected)
        await limiter.try_admit("loja", now=1.0)

        handle.emit_closed(DisconnectReason.LOGGED_OUT)
        await wait_until(lambda: manager.get_session("loja") is None)

        assert session.state == ConnectionState.LOGGED_OUT
        assert handle.closed
        assert await credential_store.load("loja") == {}
        assert await pairing_store.exists("loja") is False
        assert window_store.snapshot() == {}
        assert factory.open_calls == 1

    @pytest.mark.asyncio
    async def test_ensure_after_logout_starts_fresh(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        first = await manager.ensure_session("loja")
        factory.last_handle.emit_closed(DisconnectReason.LOGGED_OUT)
        await wait_until(lambda: manager.get_session("loja") is None)

        second = await manager.ensure_session("loja")

        assert second is not first
        assert second.state == ConnectionState.UNINITIALIZED
        assert factory.options[-1].credentials == {}

    @pytest.mark.asyncio
    async def test_teardown_is_idempotent(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
    ) -> None:
        await credential_store.persist("loja", {"registered": True})
        session = await manager.ensure_session("loja")

        assert await manager.teardown("loja") is True
        assert await manager.teardown("loja") is False
        assert await manager.teardown("never-existed") is False

        assert manager.get_session("loja") is None
        assert factory.last_handle.closed
        assert session.supervisor is not None and session.supervisor.done()
        assert await credential_store.load("loja") == {}


# ──────────────────────────────────────────────────────────────────────────────
# Testes: Reconexão
# ──────────────────────────────────────────────────────────────────────────────


class TestReconnect:
    @pytest.mark.asyncio
    async def test_connection_lost_retires_and_reopens(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
        pairing_store: MemoryPairingArtifactStore,
        limiter: SlidingWindowRateLimiter,
        window_store: MemoryRateWindowStore,
        sleep: RecordingSleep,
    ) -> None:
        await credential_store.persist("loja", {"registered": True})
        session = await manager.ensure_session("loja")
        first = factory.last_handle
        first.emit_pairing("qr-1")
        first.emit_connected()
        await wait_until(lambda: session.is_connected)
        await limiter.try_admit("loja", now=1.0)

        first.emit_closed(DisconnectReason.CONNECTION_LOST)
        await wait_until(lambda: factory.open_calls == 2)

        assert first.closed
        assert sleep.calls == [1.0]
        assert window_store.snapshot() == {}
        assert await pairing_store.exists("loja") is False
        # Credenciais sobrevivem à reconexão
        assert await credential_store.load("loja") == {"registered": True}
        assert manager.get_session("loja") is session
        assert session.state == ConnectionState.DISCONNECTED_RETRY
        assert session.reconnect_attempts == 1

        second = factory.last_handle
        second.emit_connected()
        await wait_until(lambda: session.is_connected)

        assert session.handle is second
        assert session.reconnect_attempts == 0

    @pytest.mark.asyncio
    async def test_events_ending_without_close_reason_trigger_reconnect(
        self, manager: SessionLifecycleManager, factory: FakeProtocolFactory
    ) -> None:
        await manager.ensure_session("loja")

        await factory.last_handle.close()
        await wait_until(lambda: factory.open_calls == 2)

        assert manager.state_of("loja") == ConnectionState.DISCONNECTED_RETRY

    @pytest.mark.asyncio
    async def test_event_stream_error_reconnects_instead_of_dropping(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
        sleep: RecordingSleep,
    ) -> None:
        await credential_store.persist("loja", {"registered": True})
        session = await manager.ensure_session("loja")
        first = factory.last_handle
        first.emit_connected()
        await wait_until(lambda: session.is_connected)

        first.fail_stream(RuntimeError("stream broke"))
        await wait_until(lambda: factory.open_calls == 2)

        assert first.closed
        assert sleep.calls == [1.0]
        assert manager.get_session("loja") is session
        assert session.state == ConnectionState.DISCONNECTED_RETRY
        assert session.fsm.history[-1].metadata["reason"] == DisconnectReason.UNKNOWN.value
        assert await credential_store.load("loja") == {"registered": True}

        factory.last_handle.emit_connected()
        await wait_until(lambda: session.is_connected)

    @pytest.mark.asyncio
    async def test_reconnect_exhausts_after_max_attempts(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        sleep: RecordingSleep,
    ) -> None:
        session = await manager.ensure_session("loja")
        factory.open_errors.extend(RuntimeError(f"down {i}") for i in range(5))

        factory.last_handle.emit_closed(DisconnectReason.TIMED_OUT)
        await wait_until(lambda: manager.get_session("loja") is None)

        assert sleep.calls == [1.0, 2.0, 4.0]
        assert factory.open_calls == 4
        assert session.state == ConnectionState.EXHAUSTED
        assert manager.state_of("loja") == ConnectionState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_backoff_is_capped_by_max_delay(self) -> None:
        settings = SessionSettings(
            reconnect_max_attempts=10,
            reconnect_base_delay_seconds=1.0,
            reconnect_max_delay_seconds=5.0,
        )

        delays = [settings.reconnect_delay(attempt) for attempt in range(1, 6)]

        assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_logout_while_retrying_is_terminal(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
    ) -> None:
        session = await manager.ensure_session("loja")
        factory.last_handle.emit_closed(DisconnectReason.CONNECTION_CLOSED)
        await wait_until(lambda: factory.open_calls == 2)

        factory.last_handle.emit_closed(DisconnectReason.LOGGED_OUT)
        await wait_until(lambda: manager.get_session("loja") is None)

        assert session.state == ConnectionState.LOGGED_OUT
        assert factory.open_calls == 2


# ──────────────────────────────────────────────────────────────────────────────
# Testes: Shutdown
# ──────────────────────────────────────────────────────────────────────────────


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_closes_handles_and_keeps_credentials(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
        credential_store: MemoryCredentialStore,
    ) -> None:
        await credential_store.persist("a", {"registered": True})
        session_a = await manager.ensure_session("a")
        await manager.ensure_session("b")

        await manager.shutdown()

        assert manager.list_sessions() == []
        assert all(handle.closed for handle in factory.handles)
        assert session_a.supervisor is not None and session_a.supervisor.cancelled()
        assert await credential_store.load("a") == {"registered": True}
        assert factory.open_calls == 2

    @pytest.mark.asyncio
    async def test_open_in_flight_during_shutdown_is_closed_not_registered(
        self,
        manager: SessionLifecycleManager,
        factory: FakeProtocolFactory,
    ) -> None:
        factory.open_delay = 0.05
        pending = asyncio.create_task(manager.ensure_session("late"))
        await wait_until(lambda: factory.open_calls == 1)

        await manager.shutdown()

        with pytest.raises(SessionNotReadyError):
            await pending
        assert manager.list_sessions() == []
        assert factory.last_handle.closed

        with pytest.raises(SessionNotReadyError):
            await manager.ensure_session("other")
        assert factory.open_calls == 1
