"""Factories de dependências — criação de implementações concretas.

Centraliza a escolha de backends (memória/Redis, mock de protocolo)
com base nas settings e monta o container do serviço.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.bootstrap.clients import create_async_redis_client
from app.infra.media.remote_media_fetcher import HttpxRemoteMediaFetcher
from app.infra.protocol.mock_client import MockProtocolClientFactory
from app.infra.stores import (
    FileCredentialStore,
    FilePairingArtifactStore,
    MemoryRateWindowStore,
    RedisRateWindowStore,
)
from app.services.rate_limiter import SlidingWindowRateLimiter
from app.sessions.manager import SessionLifecycleManager
from app.sessions.pairing import PairingProvider
from app.use_cases.dispatch import SendBulkUseCase, SendMessageUseCase
from config.settings import (
    DispatchSettings,
    RateLimitSettings,
    SessionSettings,
    WhatsAppSettings,
    get_base_settings,
    get_dispatch_settings,
    get_rate_limit_settings,
    get_session_settings,
    get_whatsapp_settings,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.protocols.credential_store import CredentialStoreProtocol
    from app.protocols.media_fetcher import RemoteMediaFetcherProtocol
    from app.protocols.pairing_store import PairingArtifactStoreProtocol
    from app.protocols.protocol_client import ProtocolClientFactoryProtocol
    from app.protocols.rate_window_store import RateWindowStoreProtocol

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Store Factories
# ──────────────────────────────────────────────────────────────────────────────


def create_rate_window_store(settings: RateLimitSettings) -> RateWindowStoreProtocol:
    """Cria store das janelas de rate limit.

    RATE_LIMIT_BACKEND:
    - "memory": MemoryRateWindowStore (processo único)
    - "redis": RedisRateWindowStore (janelas compartilhadas entre réplicas)
    """
    if settings.backend == "redis":
        store = RedisRateWindowStore(create_async_redis_client())
        logger.info("rate_window_store_created", extra={"backend": "redis"})
        return store

    if settings.backend == "memory":
        logger.info("rate_window_store_created", extra={"backend": "memory"})
        return MemoryRateWindowStore()

    msg = f"RATE_LIMIT_BACKEND inválido: {settings.backend}"
    raise ValueError(msg)


def create_credential_store(settings: SessionSettings) -> CredentialStoreProtocol:
    """Cria store de credenciais em disco (um diretório por sessão em AUTH_DIR)."""
    return FileCredentialStore(settings.auth_dir)


def create_pairing_store(settings: SessionSettings) -> PairingArtifactStoreProtocol:
    """Cria store de artefatos de pareamento (um PNG por sessão em QR_DIR)."""
    return FilePairingArtifactStore(settings.qr_dir)


def create_protocol_client_factory(settings: SessionSettings) -> ProtocolClientFactoryProtocol:
    """Cria fábrica de handles conforme PROTOCOL_BACKEND."""
    if settings.protocol_backend == "mock":
        environment = get_base_settings().environment
        if environment != "development":
            logger.warning(
                "mock_protocol_in_non_dev",
                extra={"backend": "mock", "environment": environment},
            )
        return MockProtocolClientFactory()

    msg = f"PROTOCOL_BACKEND inválido: {settings.protocol_backend}"
    raise ValueError(msg)


def create_media_fetcher(settings: DispatchSettings) -> RemoteMediaFetcherProtocol:
    return HttpxRemoteMediaFetcher(
        timeout_seconds=settings.media_fetch_timeout_seconds,
        max_size_bytes=settings.media_max_size_bytes,
    )


# ──────────────────────────────────────────────────────────────────────────────
# Container
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class GatewayContainer:
    """Componentes montados do serviço (um por processo)."""

    session_settings: SessionSettings
    rate_limit_settings: RateLimitSettings
    rate_window_store: RateWindowStoreProtocol
    credential_store: CredentialStoreProtocol
    pairing_store: PairingArtifactStoreProtocol
    client_factory: ProtocolClientFactoryProtocol
    rate_limiter: SlidingWindowRateLimiter
    manager: SessionLifecycleManager
    pairing_provider: PairingProvider
    send_message: SendMessageUseCase
    send_bulk: SendBulkUseCase

    async def aclose(self) -> None:
        await self.manager.shutdown()


def build_container(
    *,
    session_settings: SessionSettings | None = None,
    rate_limit_settings: RateLimitSettings | None = None,
    dispatch_settings: DispatchSettings | None = None,
    whatsapp_settings: WhatsAppSettings | None = None,
    client_factory: ProtocolClientFactoryProtocol | None = None,
    rate_window_store: RateWindowStoreProtocol | None = None,
    credential_store: CredentialStoreProtocol | None = None,
    pairing_store: PairingArtifactStoreProtocol | None = None,
    media_fetcher: RemoteMediaFetcherProtocol | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> GatewayContainer:
    """Monta o grafo de dependências.

    Qualquer componente pode ser substituído (testes); o restante vem
    das settings carregadas do ambiente.
    """
    session_settings = session_settings or get_session_settings()
    rate_limit_settings = rate_limit_settings or get_rate_limit_settings()
    dispatch_settings = dispatch_settings or get_dispatch_settings()
    whatsapp_settings = whatsapp_settings or get_whatsapp_settings()

    rate_window_store = rate_window_store or create_rate_window_store(rate_limit_settings)
    credential_store = credential_store or create_credential_store(session_settings)
    pairing_store = pairing_store or create_pairing_store(session_settings)
    client_factory = client_factory or create_protocol_client_factory(session_settings)
    media_fetcher = media_fetcher or create_media_fetcher(dispatch_settings)

    rate_limiter = SlidingWindowRateLimiter(
        rate_window_store,
        max_messages=rate_limit_settings.max_messages,
        window_seconds=rate_limit_settings.window_seconds,
    )
    manager = SessionLifecycleManager(
        client_factory,
        credential_store,
        pairing_store,
        rate_limiter,
        settings=session_settings,
        browser=whatsapp_settings.browser,
        sleep=sleep,
    )
    pairing_provider = PairingProvider(
        manager,
        pairing_store,
        timeout_seconds=session_settings.pairing_timeout_seconds,
        poll_interval_seconds=session_settings.pairing_poll_interval_seconds,
    )

    return GatewayContainer(
        session_settings=session_settings,
        rate_limit_settings=rate_limit_settings,
        rate_window_store=rate_window_store,
        credential_store=credential_store,
        pairing_store=pairing_store,
        client_factory=client_factory,
        rate_limiter=rate_limiter,
        manager=manager,
        pairing_provider=pairing_provider,
        send_message=SendMessageUseCase(
            manager,
            rate_limiter,
            media_fetcher,
            recipient_suffix=whatsapp_settings.recipient_suffix,
        ),
        send_bulk=SendBulkUseCase(
            manager,
            recipient_suffix=whatsapp_settings.recipient_suffix,
            pacing_seconds=dispatch_settings.bulk_pacing_seconds,
            retry_backoff_seconds=dispatch_settings.bulk_retry_backoff_seconds,
            sleep=sleep,
        ),
    )
