"""Endpoints de liveness e readiness."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter()

LIVENESS_TEXT = "✅ WhatsApp Multi-Session Bot Running"


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    sessions: int = 0
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    """Resultado de checagem de dependência."""

    status: Literal["ok", "skipped", "failed"]
    latency_ms: float | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness em texto puro."""
    return LIVENESS_TEXT


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe — verifica se o serviço está rodando."""
    container = getattr(request.app.state, "container", None)
    return HealthResponse(
        status="healthy",
        service="multisession-gateway",
        timestamp=datetime.now(UTC).isoformat(),
        sessions=len(container.manager.list_sessions()) if container is not None else 0,
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe: diretórios de estado e Redis (quando é o backend)."""
    container = getattr(request.app.state, "container", None)
    redis_required = container is not None and container.rate_limit_settings.backend == "redis"

    redis_check = (
        await _check_redis(getattr(request.app.state, "redis_client", None))
        if redis_required
        else DependencyCheck(status="skipped")
    )
    storage_check = _check_storage(container)

    ready = container is not None and storage_check.status == "ok" and redis_check.status != "failed"
    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "redis": redis_check.as_dict(),
            "storage": storage_check.as_dict(),
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)


async def _check_redis(redis_client: Any | None) -> DependencyCheck:
    if redis_client is None:
        return DependencyCheck(status="failed", error="not_configured")
    started_at = time.perf_counter()
    try:
        await asyncio.wait_for(redis_client.ping(), timeout=2.0)
    except TimeoutError:
        return DependencyCheck(status="failed", error="timeout")
    except Exception as exc:
        logger.warning("readiness_redis_check_failed", extra={"error_type": type(exc).__name__})
        return DependencyCheck(status="failed", error=type(exc).__name__)
    latency_ms = (time.perf_counter() - started_at) * 1000
    return DependencyCheck(status="ok", latency_ms=round(latency_ms, 2))


def _check_storage(container: Any | None) -> DependencyCheck:
    if container is None:
        return DependencyCheck(status="failed", error="not_configured")
    settings = container.session_settings
    missing = [d for d in (settings.auth_dir, settings.qr_dir) if not Path(d).is_dir()]
    if missing:
        return DependencyCheck(status="failed", error=f"missing_dirs:{','.join(missing)}")
    return DependencyCheck(status="ok")
