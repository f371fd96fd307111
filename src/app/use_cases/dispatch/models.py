"""Modelos do Dispatch Engine: payload de envio e relatório do bulk."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


@dataclass(frozen=True, slots=True)
class Attachment:
    """Imagem recebida na própria requisição (mantida em memória)."""

    content: bytes
    mimetype: str | None = None
    filename: str | None = None


@dataclass(frozen=True, slots=True)
class OutboundPayload:
    """Conteúdo de um envio único.

    Precedência: arquivo anexado > URL de imagem > texto puro.
    Com imagem, `text` vira legenda.
    """

    text: str | None = None
    attachment: Attachment | None = None
    image_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text and self.attachment is None and not self.image_url

    @property
    def kind(self) -> str:
        if self.attachment is not None:
            return "image_file"
        if self.image_url:
            return "image_url"
        return "text"


class OutcomeStatus(StrEnum):
    """Resultado por destinatário no bulk."""

    SENT = "sent"
    SENT_RETRY = "sent (retry)"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class RecipientOutcome:
    """Registro de um destinatário no relatório."""

    recipient: str
    status: OutcomeStatus
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"number": self.recipient, "status": self.status.value}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass(slots=True)
class BulkReport:
    """Tally e relatório ordenado de um Bulk Job (efêmero, por requisição)."""

    total: int
    outcomes: list[RecipientOutcome] = field(default_factory=list)
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.sent + self.failed + self.skipped

    def record(self, outcome: RecipientOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status in (OutcomeStatus.SENT, OutcomeStatus.SENT_RETRY):
            self.sent += 1
        elif outcome.status == OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total,
            "processed": self.processed,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary(),
            "report": [outcome.to_dict() for outcome in self.outcomes],
        }
