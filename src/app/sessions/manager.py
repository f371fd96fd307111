"""Gerenciador de ciclo de vida das sessões de protocolo.

Cria, reusa, supervisiona e encerra sessões por id.

Fluxo:
    1. ensure_session(id) prepara credenciais, descobre a versão do
       protocolo e abre o handle (sob o lock do id)
    2. Uma task supervisora por sessão consome handle.events() e aplica
       as transições da FSM sob o mesmo lock
    3. Encerramento por logout → limpeza destrutiva (estado terminal)
    4. Qualquer outro encerramento → DISCONNECTED_RETRY e reabertura com
       backoff exponencial limitado; esgotado → EXHAUSTED (terminal)
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from app.observability import bind_session_id, record_lifecycle_event, reset_session_id
from app.protocols.protocol_client import (
    DisconnectReason,
    LifecycleEvent,
    LifecycleEventKind,
    OpenOptions,
)
from app.sessions.locks import KeyedLockRegistry
from app.sessions.models import Session
from config.settings import SessionSettings
from fsm import ConnectionState, create_fsm
from utils.errors import InvalidRequestError, SessionNotReadyError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.protocols.credential_store import CredentialStoreProtocol, Credentials
    from app.protocols.pairing_store import PairingArtifactStoreProtocol
    from app.protocols.protocol_client import (
        ProtocolClientFactoryProtocol,
        ProtocolHandleProtocol,
    )
    from app.services.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

DEFAULT_BROWSER = ("MultiBot", "Chrome", "1.0")


class SessionLifecycleManager:
    """Dono exclusivo das sessões e de seus handles de protocolo.

    Invariantes:
        - No máximo uma Session por id no registro
        - No máximo um handle vivo por id; o anterior é aposentado
          (handle, artefato e janela de rate) antes de abrir outro
        - Transições de um mesmo id nunca se intercalam (lock por id)
    """

    def __init__(
        self,
        client_factory: ProtocolClientFactoryProtocol,
        credential_store: CredentialStoreProtocol,
        pairing_store: PairingArtifactStoreProtocol,
        rate_limiter: SlidingWindowRateLimiter,
        settings: SessionSettings | None = None,
        browser: tuple[str, str, str] = DEFAULT_BROWSER,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        """Inicializa o gerenciador.

        Args:
            client_factory: Fábrica de handles de protocolo
            credential_store: Store de credenciais por sessão
            pairing_store: Store de artefatos de pareamento
            rate_limiter: Rate limiter (janela descartada em teardown)
            settings: Política de reconexão
            browser: Identidade anunciada ao abrir o handle
            sleep: Espera entre reconexões (injetável em testes)
            locks: Registro de locks por id do registro de sessões
        """
        self._client_factory = client_factory
        self._credentials = credential_store
        self._pairing_store = pairing_store
        self._rate_limiter = rate_limiter
        self._settings = settings or SessionSettings()
        self._browser = browser
        self._sleep = sleep
        self._locks = locks or KeyedLockRegistry()
        self._sessions: dict[str, Session] = {}
        self._closing = False

    # ──────────────────────────────────────────────────────────────
    # Consulta
    # ──────────────────────────────────────────────────────────────

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def state_of(self, session_id: str) -> ConnectionState:
        """Estado atual do id (UNINITIALIZED se não há sessão viva)."""
        session = self._sessions.get(session_id)
        return session.state if session is not None else ConnectionState.UNINITIALIZED

    def is_connected(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        return session is not None and session.is_connected

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    # ──────────────────────────────────────────────────────────────
    # Criação
    # ──────────────────────────────────────────────────────────────

    async def ensure_session(self, session_id: str) -> Session:
        """Retorna a sessão viva do id, criando-a se necessário.

        Chamadas concorrentes para o mesmo id criam um único handle.
        Falhas ao preparar credenciais ou abrir o handle propagam para o
        chamador e não deixam sessão registrada.

        Raises:
            InvalidRequestError: id vazio
            SessionNotReadyError: gerenciador em shutdown
        """
        if not session_id or not session_id.strip():
            raise InvalidRequestError("session_id is required")

        async with self._locks.hold(session_id):
            existing = self._sessions.get(session_id)
            if existing is not None and not existing.is_terminal:
                return existing
            self._reject_if_closing(session_id)

            session = Session(session_id=session_id, fsm=create_fsm(session_id))
            handle = await self._open_handle(session_id)
            # shutdown() pode ter varrido o registro durante a abertura
            if self._closing:
                await self._close_handle(session_id, handle)
                self._reject_if_closing(session_id)
            session.handle = handle
            self._sessions[session_id] = session
            session.supervisor = self._spawn_supervisor(session)

        logger.info("session_created", extra={"session_id": session_id})
        record_lifecycle_event("created", session_id)
        return session

    def _reject_if_closing(self, session_id: str) -> None:
        if self._closing:
            raise SessionNotReadyError(session_id, "Session manager is shutting down")

    async def _open_handle(self, session_id: str) -> ProtocolHandleProtocol:
        await self._credentials.prepare(session_id)
        credentials = await self._credentials.load(session_id)
        version = await self._client_factory.fetch_latest_version()
        logger.debug(
            "protocol_handle_opening",
            extra={
                "session_id": session_id,
                "protocol_version": ".".join(str(part) for part in version.version),
                "is_latest": version.is_latest,
                "has_credentials": bool(credentials),
            },
        )
        return await self._client_factory.open(
            OpenOptions(
                session_id=session_id,
                credentials=credentials,
                version=version,
                browser=self._browser,
            )
        )

    def _spawn_supervisor(self, session: Session) -> asyncio.Task[None]:
        # A task herda o contexto atual: os logs do supervisor levam o session_id
        token = bind_session_id(session.session_id)
        try:
            return asyncio.create_task(
                self._supervise(session),
                name=f"session-supervisor:{session.session_id}",
            )
        finally:
            reset_session_id(token)

    # ──────────────────────────────────────────────────────────────
    # Supervisão
    # ──────────────────────────────────────────────────────────────

    async def _supervise(self, session: Session) -> None:
        try:
            while True:
                handle = session.handle
                if handle is None:
                    return

                closed = await self._consume_events(session, handle)

                if self._sessions.get(session.session_id) is not session:
                    return

                reason = closed.reason if closed and closed.reason else DisconnectReason.CONNECTION_CLOSED
                status_code = closed.status_code if closed else None
                if reason == DisconnectReason.LOGGED_OUT:
                    await self._handle_logged_out(session, status_code)
                    return
                if not await self._reconnect(session, reason, status_code):
                    return
        except Exception:
            logger.exception("session_supervisor_failed", extra={"session_id": session.session_id})
            await self._discard(session)

    async def _consume_events(
        self,
        session: Session,
        handle: ProtocolHandleProtocol,
    ) -> LifecycleEvent | None:
        """Aplica eventos até o CLOSED; falha do stream vira CLOSED(UNKNOWN)."""
        try:
            async for event in handle.events():
                if event.kind == LifecycleEventKind.CLOSED:
                    return event
                await self._apply_event(session, handle, event)
        except Exception as exc:
            logger.warning(
                "session_event_stream_failed",
                extra={
                    "session_id": session.session_id,
                    "error_type": type(exc).__name__,
                    "error": str(exc)[:200],
                },
            )
            return LifecycleEvent.closed(DisconnectReason.UNKNOWN)
        return None

    async def _apply_event(
        self,
        session: Session,
        handle: ProtocolHandleProtocol,
        event: LifecycleEvent,
    ) -> None:
        async with self._locks.hold(session.session_id):
            if self._sessions.get(session.session_id) is not session or session.handle is not handle:
                logger.debug("session_stale_event_ignored", extra={"event": event.kind.value})
                return

            if event.kind == LifecycleEventKind.PAIRING_CHALLENGE and event.pairing_code:
                await self._on_pairing_challenge(session, event.pairing_code)
            elif event.kind == LifecycleEventKind.CONNECTED:
                self._on_connected(session)
            elif event.kind == LifecycleEventKind.CREDENTIALS_UPDATED and event.credentials is not None:
                await self._persist_credentials(session, event.credentials)

    async def _persist_credentials(self, session: Session, credentials: Credentials) -> None:
        try:
            await self._credentials.persist(session.session_id, credentials)
        except Exception:
            # A sessão segue viva; o próximo CREDENTIALS_UPDATED regrava o estado
            logger.exception("session_credentials_persist_failed", extra={"session_id": session.session_id})
            return
        logger.debug("session_credentials_persisted", extra={"session_id": session.session_id})

    async def _on_pairing_challenge(self, session: Session, pairing_code: str) -> None:
        if not self._transition(session, ConnectionState.AWAITING_PAIRING, "pairing_challenge"):
            return
        try:
            session.pairing_ref = await self._pairing_store.save(session.session_id, pairing_code)
        except Exception:
            # Desafio anterior expirou: quem espera aguarda o próximo desafio
            logger.exception("pairing_artifact_save_failed", extra={"session_id": session.session_id})
            session.clear_pairing()
            await self._drop_pairing_artifact(session.session_id)
            return
        session.pairing_code = pairing_code
        session.pairing_ready.set()
        logger.info(
            "pairing_artifact_ready",
            extra={"session_id": session.session_id, "pairing_ref": session.pairing_ref},
        )
        record_lifecycle_event("pairing_challenge", session.session_id)

    def _on_connected(self, session: Session) -> None:
        if not self._transition(session, ConnectionState.CONNECTED, "connected"):
            return
        session.reconnect_attempts = 0
        # Artefato fica obsoleto; o sinal acorda quem espera pareamento
        session.pairing_ref = None
        session.pairing_code = None
        session.pairing_ready.set()
        logger.info("session_connected", extra={"session_id": session.session_id})
        record_lifecycle_event("connected", session.session_id)

    def _transition(
        self,
        session: Session,
        target: ConnectionState,
        trigger: str,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        result = session.fsm.transition(target, trigger, metadata)
        if not result.success:
            logger.warning(
                "session_transition_rejected",
                extra={
                    "session_id": session.session_id,
                    "from_state": session.state.value,
                    "to_state": target.value,
                    "trigger": trigger,
                    "reason": result.error_reason,
                },
            )
            return False
        if result.transition is not None:
            logger.debug("session_state_changed", extra=result.transition.to_log_dict())
        return True

    # ──────────────────────────────────────────────────────────────
    # Encerramentos
    # ──────────────────────────────────────────────────────────────

    async def _handle_logged_out(self, session: Session, status_code: int | None) -> None:
        async with self._locks.hold(session.session_id):
            if self._sessions.get(session.session_id) is not session:
                return
            self._transition(
                session,
                ConnectionState.LOGGED_OUT,
                "closed",
                {"reason": DisconnectReason.LOGGED_OUT.value, "status_code": status_code},
            )
            await self._purge(session.session_id, session)

        logger.info("session_logged_out", extra={"session_id": session.session_id})
        record_lifecycle_event("logged_out", session.session_id)

    async def _reconnect(
        self,
        session: Session,
        reason: DisconnectReason,
        status_code: int | None,
    ) -> bool:
        """Reabre o handle com backoff. Retorna False se a sessão terminou."""
        session_id = session.session_id
        async with self._locks.hold(session_id):
            if self._sessions.get(session_id) is not session:
                return False
            self._transition(
                session,
                ConnectionState.DISCONNECTED_RETRY,
                "closed",
                {"reason": reason.value, "status_code": status_code},
            )
            await self._retire(session)

        while True:
            async with self._locks.hold(session_id):
                if self._sessions.get(session_id) is not session:
                    return False
                session.reconnect_attempts += 1
                attempt = session.reconnect_attempts
                if attempt > self._settings.reconnect_max_attempts:
                    self._exhaust(session)
                    return False

            delay = self._settings.reconnect_delay(attempt)
            logger.warning(
                "session_reconnect_scheduled",
                extra={
                    "session_id": session_id,
                    "reason": reason.value,
                    "attempt": attempt,
                    "delay_seconds": delay,
                },
            )
            record_lifecycle_event("reconnect_scheduled", session_id)
            await self._sleep(delay)

            async with self._locks.hold(session_id):
                if self._sessions.get(session_id) is not session:
                    return False
                try:
                    session.handle = await self._open_handle(session_id)
                except Exception as exc:
                    logger.warning(
                        "session_reconnect_failed",
                        extra={
                            "session_id": session_id,
                            "attempt": attempt,
                            "error_type": type(exc).__name__,
                            "error": str(exc)[:200],
                        },
                    )
                    self._transition(
                        session,
                        ConnectionState.DISCONNECTED_RETRY,
                        "reconnect_failed",
                        {"attempt": attempt},
                    )
                    continue

            logger.info("session_reopened", extra={"session_id": session_id, "attempt": attempt})
            return True

    def _exhaust(self, session: Session) -> None:
        self._transition(
            session,
            ConnectionState.EXHAUSTED,
            "reconnect_exhausted",
            {"attempts": session.reconnect_attempts - 1},
        )
        self._sessions.pop(session.session_id, None)
        logger.error(
            "session_reconnect_exhausted",
            extra={
                "session_id": session.session_id,
                "max_attempts": self._settings.reconnect_max_attempts,
            },
        )
        record_lifecycle_event("exhausted", session.session_id)

    async def _retire(self, session: Session) -> None:
        """Aposenta handle, artefato e janela de rate (credenciais ficam)."""
        handle, session.handle = session.handle, None
        if handle is not None:
            await self._close_handle(session.session_id, handle)
        session.clear_pairing()
        await self._drop_pairing_artifact(session.session_id)
        await self._rate_limiter.reset(session.session_id)

    async def _purge(self, session_id: str, session: Session | None) -> None:
        """Remove tudo do id: registro, handle, credenciais, artefato, janela."""
        if session is not None and self._sessions.get(session_id) is session:
            del self._sessions[session_id]
        if session is not None:
            handle, session.handle = session.handle, None
            if handle is not None:
                await self._close_handle(session_id, handle)
            session.clear_pairing()
        await self._credentials.delete(session_id)
        await self._pairing_store.delete(session_id)
        await self._rate_limiter.reset(session_id)

    async def _discard(self, session: Session) -> None:
        async with self._locks.hold(session.session_id):
            if self._sessions.get(session.session_id) is not session:
                return
            del self._sessions[session.session_id]
            await self._retire(session)

    async def _drop_pairing_artifact(self, session_id: str) -> None:
        try:
            await self._pairing_store.delete(session_id)
        except Exception as exc:
            logger.warning(
                "pairing_artifact_delete_failed",
                extra={"session_id": session_id, "error_type": type(exc).__name__},
            )

    async def _close_handle(self, session_id: str, handle: ProtocolHandleProtocol) -> None:
        try:
            await handle.close()
        except Exception as exc:
            logger.warning(
                "protocol_handle_close_failed",
                extra={"session_id": session_id, "error_type": type(exc).__name__},
            )

    async def teardown(self, session_id: str) -> bool:
        """Encerramento destrutivo (logout) do id. Idempotente.

        Returns:
            True se havia sessão viva, False se o id já estava removido
        """
        async with self._locks.hold(session_id):
            session = self._sessions.get(session_id)
            if session is not None:
                self._transition(session, ConnectionState.LOGGED_OUT, "teardown")
            await self._purge(session_id, session)
            supervisor = session.supervisor if session is not None else None

        if supervisor is not None and supervisor is not asyncio.current_task():
            supervisor.cancel()
            await asyncio.gather(supervisor, return_exceptions=True)

        if session is not None:
            logger.info("session_torn_down", extra={"session_id": session_id})
            record_lifecycle_event("logged_out", session_id)
        return session is not None

    async def shutdown(self) -> None:
        """Fecha handles e cancela supervisores. Credenciais são mantidas.

        Após o shutdown, ensure_session recusa novas sessões; aberturas em
        andamento fecham o próprio handle em vez de registrá-lo.
        """
        self._closing = True
        sessions = list(self._sessions.values())
        self._sessions.clear()

        supervisors = [s.supervisor for s in sessions if s.supervisor is not None]
        for task in supervisors:
            task.cancel()
        await asyncio.gather(*supervisors, return_exceptions=True)

        for session in sessions:
            handle, session.handle = session.handle, None
            if handle is not None:
                await self._close_handle(session.session_id, handle)

        logger.info("session_manager_shutdown", extra={"closed_sessions": len(sessions)})
