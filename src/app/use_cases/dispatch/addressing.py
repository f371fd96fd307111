"""Normalização de destinatários para o formato endereçável do protocolo."""

from __future__ import annotations

from config.settings.whatsapp import USER_JID_SUFFIX
from utils.errors import InvalidRequestError


def normalize_recipient(recipient: str, suffix: str = USER_JID_SUFFIX) -> str:
    """Acrescenta o sufixo de rede quando ausente.

    Args:
        recipient: Número informado pelo chamador (com ou sem sufixo)
        suffix: Sufixo de rede (ex: "@s.whatsapp.net")

    Returns:
        Endereço canônico (ex: "5511999990000@s.whatsapp.net")

    Raises:
        InvalidRequestError: destinatário vazio
    """
    cleaned = str(recipient).strip()
    if not cleaned:
        raise InvalidRequestError("number is required")
    if cleaned.endswith(suffix):
        return cleaned
    return f"{cleaned}{suffix}"
