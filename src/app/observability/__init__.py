"""Observabilidade — contexto de logs e métricas.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_dispatch_outcome
"""

from app.observability.correlation import (
    bind_session_id,
    get_correlation_id,
    get_session_id,
    reset_correlation_id,
    reset_session_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_dispatch_outcome,
    record_latency,
    record_lifecycle_event,
)

__all__ = [
    "bind_session_id",
    "get_correlation_id",
    "get_session_id",
    "record_dispatch_outcome",
    "record_latency",
    "record_lifecycle_event",
    "reset_correlation_id",
    "reset_session_id",
    "set_correlation_id",
]
