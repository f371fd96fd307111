"""Endpoints de sessão: pareamento (QR) e status."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from api.routes.context import get_container, request_context
from utils.errors import GatewayError

logger = logging.getLogger(__name__)

router = APIRouter()

ALREADY_CONNECTED_TEXT = "✅ Already connected"


@router.get("/qr/{session_id}", response_model=None)
async def get_qr(session_id: str, request: Request) -> Response:
    """Retorna a imagem de pareamento da sessão.

    - 200 image/png: artefato novo ou pendente
    - 200 texto: sessão já conectada
    - 504 texto: artefato não ficou pronto no timeout
    """
    container = get_container(request)
    with request_context(request, session_id):
        try:
            result = await container.pairing_provider.get_pairing_artifact(session_id)
        except GatewayError as exc:
            return PlainTextResponse(exc.message, status_code=exc.http_status)
        except Exception as exc:
            logger.exception("pairing_request_failed", extra={"session_id": session_id})
            return PlainTextResponse(str(exc) or type(exc).__name__, status_code=500)

    if result.already_connected or result.artifact is None:
        return PlainTextResponse(ALREADY_CONNECTED_TEXT, status_code=200)
    return Response(content=result.artifact.content, media_type=result.artifact.media_type)


@router.get("/sessions/{session_id}")
async def get_session_status(session_id: str, request: Request) -> JSONResponse:
    """Status somente leitura da sessão viva."""
    container = get_container(request)
    session = container.manager.get_session(session_id)
    if session is None:
        return JSONResponse(
            content={"success": False, "message": "Session not found"},
            status_code=404,
        )
    return JSONResponse(content=session.to_status_dict())
