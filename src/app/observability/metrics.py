"""Registro de métricas via structured logging.

As métricas são emitidas como logs estruturados e agregadas
posteriormente pela plataforma de logs.

Métricas suportadas:
- Latência: tempo de execução por componente/operação
- Dispatch: contador de resultados por destinatário (sent, failed, ...)
- Lifecycle: contador de eventos de ciclo de vida das sessões

Uso:
    start = time.perf_counter()
    ...
    record_latency("dispatch", "send_one", (time.perf_counter() - start) * 1000)
    record_dispatch_outcome("bulk", "skipped")
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "dispatch", "pairing")
        operation: Nome da operação (ex: "send_one", "wait_artifact")
        latency_ms: Latência em milissegundos
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
        },
    )


def record_dispatch_outcome(mode: str, status: str) -> None:
    """Registra resultado de um envio (mode: single|bulk)."""
    logger.info(
        "metric_dispatch_outcome",
        extra={
            "metric_type": "counter",
            "mode": mode,
            "status": status,
        },
    )


def record_lifecycle_event(event: str, session_id: str) -> None:
    """Registra evento de ciclo de vida (connected, logged_out, reconnect, ...)."""
    logger.info(
        "metric_lifecycle_event",
        extra={
            "metric_type": "counter",
            "event": event,
            "session_id": session_id,
        },
    )
