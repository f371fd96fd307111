"""Dispatch Engine: envio único e envio em massa."""

from .addressing import normalize_recipient
from .models import (
    Attachment,
    BulkReport,
    OutboundPayload,
    OutcomeStatus,
    RecipientOutcome,
)
from .send_bulk import SendBulkUseCase
from .send_message import SendMessageUseCase

__all__ = [
    "Attachment",
    "BulkReport",
    "OutboundPayload",
    "OutcomeStatus",
    "RecipientOutcome",
    "SendBulkUseCase",
    "SendMessageUseCase",
    "normalize_recipient",
]
