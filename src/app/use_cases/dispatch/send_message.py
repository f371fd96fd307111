"""Use case de envio único (sendOne).

Ordem:
    1. Sessão precisa estar CONNECTED
    2. Admissão no rate limiter (rejeição não envia nada)
    3. Normalização do destinatário
    4. Consulta de existência (após a admissão: inexistente ainda consome vaga)
    5. Envio: arquivo > URL de imagem > texto
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from app.observability import record_dispatch_outcome, record_latency
from app.use_cases.dispatch.addressing import normalize_recipient
from config.logging import mask_recipient
from config.settings.whatsapp import USER_JID_SUFFIX
from utils.errors import (
    GatewayError,
    InvalidRequestError,
    RateLimitedError,
    RecipientNotFoundError,
    SessionNotReadyError,
    UnexpectedProtocolError,
)

if TYPE_CHECKING:
    from app.protocols.media_fetcher import RemoteMediaFetcherProtocol
    from app.protocols.protocol_client import ProtocolHandleProtocol
    from app.services.rate_limiter import SlidingWindowRateLimiter
    from app.sessions.manager import SessionLifecycleManager
    from app.use_cases.dispatch.models import OutboundPayload

logger = logging.getLogger(__name__)


class SendMessageUseCase:
    """Orquestra checagem de sessão, admissão, existência e envio."""

    def __init__(
        self,
        manager: SessionLifecycleManager,
        rate_limiter: SlidingWindowRateLimiter,
        media_fetcher: RemoteMediaFetcherProtocol,
        recipient_suffix: str = USER_JID_SUFFIX,
    ) -> None:
        self._manager = manager
        self._rate_limiter = rate_limiter
        self._media_fetcher = media_fetcher
        self._recipient_suffix = recipient_suffix

    async def execute(
        self,
        session_id: str,
        recipient: str,
        payload: OutboundPayload,
    ) -> dict[str, Any]:
        """Envia uma mensagem e retorna o ack do protocolo.

        Raises:
            InvalidRequestError: número ou conteúdo ausente
            SessionNotReadyError: sessão inexistente ou não conectada
            RateLimitedError: janela da sessão cheia
            RecipientNotFoundError: número não registrado na rede
            MediaFetchError: falha ao baixar a imagem da URL
            UnexpectedProtocolError: falha do handle na consulta ou no envio
        """
        if not recipient or not str(recipient).strip():
            raise InvalidRequestError("number is required")
        if payload.is_empty:
            raise InvalidRequestError("message or image is required")

        start = time.perf_counter()
        try:
            ack = await self._send(session_id, recipient, payload)
        except GatewayError as exc:
            record_dispatch_outcome("single", exc.code.lower())
            raise
        finally:
            record_latency("dispatch", "send_one", (time.perf_counter() - start) * 1000)

        record_dispatch_outcome("single", "sent")
        logger.info(
            "message_sent",
            extra={
                "session_id": session_id,
                "recipient": mask_recipient(recipient),
                "payload_kind": payload.kind,
            },
        )
        return ack

    async def _send(
        self,
        session_id: str,
        recipient: str,
        payload: OutboundPayload,
    ) -> dict[str, Any]:
        session = self._manager.get_session(session_id)
        if session is None or not session.is_connected or session.handle is None:
            raise SessionNotReadyError(session_id)
        handle = session.handle

        admission = await self._rate_limiter.try_admit(session_id)
        if not admission.admitted:
            raise RateLimitedError(admission.retry_after_seconds)

        address = normalize_recipient(recipient, self._recipient_suffix)

        try:
            exists = await handle.query_exists(address)
        except GatewayError:
            raise
        except Exception as exc:
            raise UnexpectedProtocolError(str(exc) or type(exc).__name__) from exc
        if not exists:
            logger.info(
                "recipient_not_found",
                extra={"session_id": session_id, "recipient": mask_recipient(recipient)},
            )
            raise RecipientNotFoundError(recipient)

        return await self._dispatch(handle, address, payload)

    async def _dispatch(
        self,
        handle: ProtocolHandleProtocol,
        address: str,
        payload: OutboundPayload,
    ) -> dict[str, Any]:
        if payload.attachment is not None:
            image = payload.attachment.content
            mimetype = payload.attachment.mimetype
        elif payload.image_url:
            media = await self._media_fetcher.fetch(payload.image_url)
            image = media.content
            mimetype = media.mime_type
        else:
            image = None
            mimetype = None

        try:
            if image is None:
                return await handle.send_text(address, payload.text or "")
            return await handle.send_image(address, image, caption=payload.text, mimetype=mimetype)
        except GatewayError:
            raise
        except Exception as exc:
            raise UnexpectedProtocolError(str(exc) or type(exc).__name__) from exc
