"""Rotas HTTP da API — adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (pareamento, envio, health)
- Validação inicial de request (corpo, content-type)
- Delegação para o Pairing Provider e os use cases de dispatch
- Respostas HTTP apropriadas

Estrutura:
- routes/health/: liveness e readiness
- routes/sessions/: QR de pareamento e status de sessão
- routes/messages/: envio único e em massa

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
