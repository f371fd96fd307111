"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.rate_limiter import AdmissionResult, SlidingWindowRateLimiter

__all__ = [
    "AdmissionResult",
    "SlidingWindowRateLimiter",
]
