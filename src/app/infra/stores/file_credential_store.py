"""Credential store em disco — um diretório por sessão.

Layout:
    <auth_dir>/<session_id>/creds.json

I/O bloqueante executado via asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from pathlib import Path

from app.protocols.credential_store import CredentialStoreProtocol, Credentials

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "creds.json"


class FileCredentialStore(CredentialStoreProtocol):
    """Persiste credenciais como JSON no diretório da sessão.

    Args:
        root_dir: Diretório raiz das credenciais (AUTH_DIR)
    """

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)

    def session_dir(self, session_id: str) -> Path:
        """Diretório da sessão; rejeita ids que escapariam da raiz."""
        path = (self._root / session_id).resolve()
        if path.parent != self._root.resolve():
            msg = f"session_id inválido para diretório de credenciais: {session_id!r}"
            raise ValueError(msg)
        return path

    def _creds_path(self, session_id: str) -> Path:
        return self.session_dir(session_id) / CREDENTIALS_FILENAME

    async def prepare(self, session_id: str) -> None:
        path = self.session_dir(session_id)
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)

    async def load(self, session_id: str) -> Credentials:
        return await asyncio.to_thread(self._load_sync, session_id)

    def _load_sync(self, session_id: str) -> Credentials:
        path = self._creds_path(session_id)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("credentials_corrupted", extra={"session_id": session_id})
            return {}
        return data if isinstance(data, dict) else {}

    async def persist(self, session_id: str, credentials: Credentials) -> None:
        await asyncio.to_thread(self._persist_sync, session_id, credentials)

    def _persist_sync(self, session_id: str, credentials: Credentials) -> None:
        path = self._creds_path(session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Escrita atômica: arquivo temporário + rename
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(credentials), encoding="utf-8")
        tmp_path.replace(path)

    async def delete(self, session_id: str) -> bool:
        path = self.session_dir(session_id)
        if not path.exists():
            return False
        await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)
        return True
