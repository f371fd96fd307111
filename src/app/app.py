"""Entrypoint do gateway multi-sessão.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 3000

Uso (desenvolvimento):
    python -m app.app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from app.bootstrap import build_container, initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client
from config.logging import get_logger
from config.settings import get_base_settings, get_rate_limit_settings, get_session_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Cria AUTH_DIR e QR_DIR
    - Monta o container (stores, rate limiter, sessões, use cases)

    Shutdown:
    - Fecha handles de protocolo e cancela supervisores
    - Fecha conexão Redis
    """
    logger.info("app_starting", extra={"service": "multisession-gateway"})
    validate_runtime_settings()

    session_settings = get_session_settings()
    for directory in (session_settings.auth_dir, session_settings.qr_dir):
        Path(directory).mkdir(parents=True, exist_ok=True)

    app.state.redis_client = None
    if get_rate_limit_settings().backend == "redis":
        app.state.redis_client = create_async_redis_client()

    app.state.container = build_container()

    yield

    logger.info("app_shutting_down", extra={"service": "multisession-gateway"})
    await app.state.container.aclose()
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="Multi-Session Gateway",
        description="Gateway HTTP multi-sessão: pareamento por QR e envio com rate limit",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "multisession-gateway"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta."""
    import uvicorn

    base = get_base_settings()
    logger.info("app_serving", extra={"host": base.host, "port": base.port})
    uvicorn.run(
        "app.app:app",
        host=base.host,
        port=base.port,
        reload=base.debug,
    )


if __name__ == "__main__":
    main()
