"""Renderização do desafio de pareamento como imagem QR (PNG)."""

from __future__ import annotations

import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

DEFAULT_BOX_SIZE = 10
DEFAULT_BORDER = 4


def render_qr_png(
    pairing_code: str,
    *,
    box_size: int = DEFAULT_BOX_SIZE,
    border: int = DEFAULT_BORDER,
) -> bytes:
    """Gera PNG do QR code para o conteúdo do desafio.

    Args:
        pairing_code: Conteúdo bruto do desafio emitido pelo handle
        box_size: Pixels por módulo
        border: Módulos de borda

    Returns:
        Bytes do PNG.

    Raises:
        ValueError: Se o desafio for vazio.
    """
    if not pairing_code:
        raise ValueError("pairing_code não pode ser vazio")

    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(pairing_code)
    qr.make(fit=True)
    img = qr.make_image(fill_color="#000000", back_color="#FFFFFF")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
