"""Download de imagem remota informada por URL no envio único."""

from __future__ import annotations

import logging

import httpx

from app.protocols.media_fetcher import FetchedMedia
from utils.errors import MediaFetchError

logger = logging.getLogger(__name__)


class HttpxRemoteMediaFetcher:
    """Baixa bytes de mídia via httpx com timeout e limite de tamanho.

    Args:
        timeout_seconds: Timeout total da requisição
        max_size_bytes: Tamanho máximo aceito
        client: AsyncClient compartilhado (opcional; um por chamada se None)
    """

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        max_size_bytes: int = 16 * 1024 * 1024,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._max_size_bytes = max_size_bytes
        self._client = client

    async def fetch(self, url: str) -> FetchedMedia:
        """Baixa a mídia; falhas viram MediaFetchError com o motivo."""
        if not url.lower().startswith(("http://", "https://")):
            raise MediaFetchError(f"Unsupported media URL scheme: {url[:16]}")

        try:
            if self._client is not None:
                return await self._attempt_fetch(self._client, url)
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                return await self._attempt_fetch(client, url)
        except httpx.TimeoutException as exc:
            logger.warning("remote_media_fetch_timeout", extra={"error_type": type(exc).__name__})
            raise MediaFetchError("Timed out fetching image") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "remote_media_fetch_failed",
                extra={"status_code": exc.response.status_code},
            )
            raise MediaFetchError(
                f"Request failed with status code {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("remote_media_fetch_failed", extra={"error_type": type(exc).__name__})
            raise MediaFetchError(str(exc) or type(exc).__name__) from exc

    async def _attempt_fetch(self, client: httpx.AsyncClient, url: str) -> FetchedMedia:
        response = await client.get(url)
        response.raise_for_status()
        if self._is_too_large(response) or len(response.content) > self._max_size_bytes:
            raise MediaFetchError("Image exceeds maximum allowed size")
        mime_type = response.headers.get("content-type")
        if mime_type:
            mime_type = mime_type.split(";", 1)[0].strip()
        return FetchedMedia(content=response.content, mime_type=mime_type or None)

    def _is_too_large(self, response: httpx.Response) -> bool:
        content_length = response.headers.get("content-length")
        return bool(
            content_length and content_length.isdigit() and int(content_length) > self._max_size_bytes
        )
