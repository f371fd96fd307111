"""Store de artefatos de pareamento em disco.

Layout:
    <qr_dir>/<session_id>.png
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from app.infra.pairing.qr_renderer import render_qr_png
from app.protocols.pairing_store import PairingArtifact, PairingArtifactStoreProtocol

if TYPE_CHECKING:
    from collections.abc import Callable


class FilePairingArtifactStore(PairingArtifactStoreProtocol):
    """Renderiza o desafio como PNG e grava um arquivo por sessão.

    Args:
        root_dir: Diretório dos artefatos (QR_DIR)
        renderer: Função código → PNG (padrão: render_qr_png)
    """

    def __init__(
        self,
        root_dir: str | Path,
        renderer: Callable[[str], bytes] = render_qr_png,
    ) -> None:
        self._root = Path(root_dir)
        self._renderer = renderer

    def artifact_path(self, session_id: str) -> Path:
        path = (self._root / f"{session_id}.png").resolve()
        if path.parent != self._root.resolve():
            msg = f"session_id inválido para artefato de pareamento: {session_id!r}"
            raise ValueError(msg)
        return path

    async def save(self, session_id: str, pairing_code: str) -> str:
        path = self.artifact_path(session_id)
        content = await asyncio.to_thread(self._renderer, pairing_code)
        await asyncio.to_thread(self._write_sync, path, content)
        return str(path)

    @staticmethod
    def _write_sync(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".png.tmp")
        tmp_path.write_bytes(content)
        tmp_path.replace(path)

    async def load(self, session_id: str) -> PairingArtifact | None:
        path = self.artifact_path(session_id)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        return PairingArtifact(session_id=session_id, reference=str(path), content=content)

    async def exists(self, session_id: str) -> bool:
        return self.artifact_path(session_id).exists()

    async def delete(self, session_id: str) -> bool:
        path = self.artifact_path(session_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        return True
