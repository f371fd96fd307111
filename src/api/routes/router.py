"""Agregador de rotas — registra todos os routers da API.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.health.router import router as health_router
from api.routes.messages.router import router as messages_router
from api.routes.sessions.router import router as sessions_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Liveness/readiness na raiz (/, /health, /ready)
    api_router.include_router(health_router, tags=["health"])

    # Pareamento e status (/qr/{id}, /sessions/{id})
    api_router.include_router(sessions_router, tags=["sessions"])

    # Envio (/send/{id}, /send-bulk/{id})
    api_router.include_router(messages_router, tags=["messages"])

    return api_router
