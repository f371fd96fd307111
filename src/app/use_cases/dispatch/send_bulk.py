"""Use case de envio em massa (sendBulk).

Processa destinatários em sequência, na ordem de entrada, um por vez.
Não passa pelo rate limiter: o ritmo é dado por uma pausa fixa entre
destinatários. Falhas de um destinatário nunca abortam o lote.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from app.observability import record_dispatch_outcome, record_latency
from app.use_cases.dispatch.addressing import normalize_recipient
from app.use_cases.dispatch.models import BulkReport, OutcomeStatus, RecipientOutcome
from config.logging import mask_recipient
from config.settings.whatsapp import USER_JID_SUFFIX
from utils.errors import InvalidRequestError, SessionNotReadyError, TransientSendError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from app.protocols.protocol_client import ProtocolHandleProtocol
    from app.sessions.manager import SessionLifecycleManager

logger = logging.getLogger(__name__)

DEFAULT_PACING_SECONDS = 0.5
DEFAULT_RETRY_BACKOFF_SECONDS = 2.0
NOT_REGISTERED_REASON = "Not registered on WhatsApp"


def _error_reason(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class SendBulkUseCase:
    """Fan-out sequencial com skip, retry único e pausa entre envios.

    Args:
        manager: Lifecycle Manager (somente leitura)
        recipient_suffix: Sufixo de rede para normalização
        pacing_seconds: Pausa entre destinatários (inclusive após skip)
        retry_backoff_seconds: Espera antes da única nova tentativa
        sleep: Função de espera (injetável em testes)
    """

    def __init__(
        self,
        manager: SessionLifecycleManager,
        recipient_suffix: str = USER_JID_SUFFIX,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._manager = manager
        self._recipient_suffix = recipient_suffix
        self._pacing_seconds = pacing_seconds
        self._retry_backoff_seconds = retry_backoff_seconds
        self._sleep = sleep

    async def execute(
        self,
        session_id: str,
        recipients: Sequence[str],
        message: str,
        retry_failed: bool = False,
    ) -> BulkReport:
        """Executa o Bulk Job e retorna o relatório.

        Raises:
            InvalidRequestError: lista vazia ou mensagem ausente (antes de
                qualquer checagem de sessão)
            SessionNotReadyError: sessão não conectada (lote inteiro)
        """
        if not isinstance(recipients, list | tuple) or not recipients or not message:
            raise InvalidRequestError("Invalid numbers or message")

        self._require_handle(session_id)

        report = BulkReport(total=len(recipients))
        start = time.perf_counter()
        logger.info(
            "bulk_started",
            extra={"session_id": session_id, "total": report.total, "retry_failed": retry_failed},
        )

        for index, recipient in enumerate(recipients):
            if index:
                await self._sleep(self._pacing_seconds)
            outcome = await self._process(session_id, recipient, message, retry_failed)
            report.record(outcome)
            record_dispatch_outcome("bulk", outcome.status.value)

        record_latency("dispatch", "send_bulk", (time.perf_counter() - start) * 1000)
        logger.info("bulk_finished", extra={"session_id": session_id, **report.summary()})
        return report

    def _require_handle(self, session_id: str) -> ProtocolHandleProtocol:
        # Relido a cada destinatário: a sessão pode cair no meio do lote
        session = self._manager.get_session(session_id)
        if session is None or not session.is_connected or session.handle is None:
            raise SessionNotReadyError(session_id)
        return session.handle

    async def _process(
        self,
        session_id: str,
        recipient: str,
        message: str,
        retry_failed: bool,
    ) -> RecipientOutcome:
        masked = mask_recipient(str(recipient))
        try:
            address = normalize_recipient(recipient, self._recipient_suffix)
            handle = self._require_handle(session_id)
            if not await handle.query_exists(address):
                logger.info("bulk_recipient_skipped", extra={"recipient": masked})
                return RecipientOutcome(recipient, OutcomeStatus.SKIPPED, NOT_REGISTERED_REASON)

            try:
                await self._send_text(handle, address, message)
                return RecipientOutcome(recipient, OutcomeStatus.SENT)
            except TransientSendError as exc:
                if not retry_failed:
                    logger.warning(
                        "bulk_recipient_failed",
                        extra={"recipient": masked, "error_type": type(exc).__name__},
                    )
                    return RecipientOutcome(recipient, OutcomeStatus.FAILED, _error_reason(exc))
                logger.info(
                    "bulk_recipient_retry_scheduled",
                    extra={"recipient": masked, "backoff_seconds": self._retry_backoff_seconds},
                )

            await self._sleep(self._retry_backoff_seconds)
            try:
                await self._send_text(self._require_handle(session_id), address, message)
                return RecipientOutcome(recipient, OutcomeStatus.SENT_RETRY)
            except Exception as retry_exc:
                logger.warning(
                    "bulk_recipient_failed",
                    extra={"recipient": masked, "error_type": type(retry_exc).__name__, "retried": True},
                )
                return RecipientOutcome(
                    recipient,
                    OutcomeStatus.FAILED,
                    f"Retry failed: {_error_reason(retry_exc)}",
                )
        except Exception as exc:
            # Falha inesperada (ex: consulta de existência) conta como failed
            logger.warning(
                "bulk_recipient_failed",
                extra={"recipient": masked, "error_type": type(exc).__name__},
            )
            return RecipientOutcome(recipient, OutcomeStatus.FAILED, _error_reason(exc))

    @staticmethod
    async def _send_text(handle: ProtocolHandleProtocol, address: str, message: str) -> None:
        try:
            await handle.send_text(address, message)
        except TransientSendError:
            raise
        except Exception as exc:
            # Toda falha de envio é elegível à política de retry do bulk
            raise TransientSendError(_error_reason(exc)) from exc
