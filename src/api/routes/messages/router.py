"""Endpoints de envio: único (/send) e em massa (/send-bulk)."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from api.routes.context import get_container, request_context
from api.routes.errors import gateway_error_response, unexpected_error_response
from api.routes.messages.schemas import (
    BulkSendRequest,
    BulkSendResponse,
    BulkSummary,
    SendMessageRequest,
    SendMessageResponse,
)
from app.use_cases.dispatch import Attachment, OutboundPayload
from utils.errors import GatewayError, InvalidRequestError

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@router.post("/send/{session_id}", response_model=None)
async def send_message(session_id: str, request: Request) -> JSONResponse:
    """Envia uma mensagem (texto, imagem anexada ou imagem por URL).

    Aceita JSON, urlencoded ou multipart (arquivo no campo `image`).
    """
    container = get_container(request)
    with request_context(request, session_id):
        try:
            number, payload = await _parse_send_request(request)
            ack = await container.send_message.execute(session_id, number, payload)
        except GatewayError as exc:
            return gateway_error_response(exc)
        except Exception as exc:
            logger.exception("send_message_failed", extra={"session_id": session_id})
            return unexpected_error_response(exc)

    body = SendMessageResponse(data=ack)
    return JSONResponse(content=body.model_dump())


@router.post("/send-bulk/{session_id}", response_model=None)
async def send_bulk(session_id: str, request: Request) -> JSONResponse:
    """Envia o mesmo texto para vários números, em sequência."""
    container = get_container(request)
    with request_context(request, session_id):
        try:
            bulk_request = BulkSendRequest.model_validate(await _read_json(request))
        except (ValidationError, InvalidRequestError):
            return gateway_error_response(InvalidRequestError("Invalid numbers or message"))

        try:
            report = await container.send_bulk.execute(
                session_id,
                bulk_request.numbers,
                bulk_request.message,
                retry_failed=bulk_request.retry_failed,
            )
        except GatewayError as exc:
            return gateway_error_response(exc)
        except Exception as exc:
            logger.exception("send_bulk_failed", extra={"session_id": session_id})
            return unexpected_error_response(exc)

    body = BulkSendResponse(
        summary=BulkSummary(**report.summary()),
        report=[outcome.to_dict() for outcome in report.outcomes],
    )
    return JSONResponse(content=body.model_dump())


async def _read_json(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidRequestError("Invalid JSON body") from exc
    if not isinstance(data, dict):
        raise InvalidRequestError("JSON body must be an object")
    return data


async def _parse_send_request(request: Request) -> tuple[str, OutboundPayload]:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(FORM_CONTENT_TYPES):
        return await _parse_form(request)

    try:
        body = SendMessageRequest.model_validate(await _read_json(request))
    except ValidationError as exc:
        raise InvalidRequestError("Invalid number or message") from exc
    return body.number or "", OutboundPayload(text=body.message, image_url=body.image)


async def _parse_form(request: Request) -> tuple[str, OutboundPayload]:
    form = await request.form()
    attachment: Attachment | None = None
    image_url: str | None = None

    # Campo `image` pode ser arquivo, URL ou ambos; arquivo tem precedência
    for value in form.getlist("image"):
        if isinstance(value, UploadFile):
            if attachment is None:
                attachment = Attachment(
                    content=await value.read(),
                    mimetype=value.content_type,
                    filename=value.filename,
                )
        elif value:
            image_url = value

    number = form.get("number")
    message = form.get("message")
    return (
        number if isinstance(number, str) else "",
        OutboundPayload(
            text=message if isinstance(message, str) else None,
            attachment=attachment,
            image_url=image_url,
        ),
    )
