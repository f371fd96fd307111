"""Schemas de request/response dos endpoints de envio."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_text(value: Any) -> Any:
    # Números chegam como int em JSON e precisam virar texto
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return value


class SendMessageRequest(BaseModel):
    """Corpo JSON de POST /send/{session_id}."""

    model_config = ConfigDict(extra="ignore")

    number: str | None = None
    message: str | None = None
    image: str | None = Field(default=None, description="URL de imagem remota")

    @field_validator("number", "message", mode="before")
    @classmethod
    def coerce_text_fields(cls, value: Any) -> Any:
        return _coerce_text(value)


class SendMessageResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    message: str = "Message sent"


class BulkSendRequest(BaseModel):
    """Corpo JSON de POST /send-bulk/{session_id}."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    numbers: list[str]
    message: str
    retry_failed: bool = Field(default=False, alias="retryFailed")

    @field_validator("numbers", mode="before")
    @classmethod
    def coerce_numbers(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_text(item) for item in value]
        return value


class BulkSummary(BaseModel):
    total: int
    processed: int
    sent: int
    failed: int
    skipped: int


class BulkSendResponse(BaseModel):
    success: bool = True
    summary: BulkSummary
    report: list[dict[str, Any]]
