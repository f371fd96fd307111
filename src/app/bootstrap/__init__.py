"""Bootstrap da aplicação — inicialização e wiring.

Este módulo é o composition root: carrega `.env`, configura logging,
valida settings e monta o container de dependências.

Uso:
    from app.bootstrap import build_container, initialize_app

    # Na inicialização do serviço
    initialize_app()
    container = build_container()
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from app.bootstrap.dependencies import GatewayContainer, build_container
from app.observability import get_correlation_id, get_session_id
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_dispatch_settings,
    get_rate_limit_settings,
    get_session_settings,
    get_whatsapp_settings,
)

# Nome do serviço para logs e métricas
SERVICE_NAME = "multisession_gateway"

# Nível de log padrão (pode ser sobrescrito por env)
DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Inicializa a aplicação com todas as configurações necessárias.

    Deve ser chamada uma vez no início do serviço.

    Configura:
    - Variáveis de `.env` (sem sobrescrever o ambiente)
    - Logging estruturado JSON com correlation_id e session_id
    """
    load_dotenv(override=False)
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    configure_logging(
        level=log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
        session_id_getter=get_session_id,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development`/`test` mantém alerta sem bloquear execução local.
    """
    base = get_base_settings()
    environment = base.environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"session: {error}" for error in get_session_settings().validate(base))
    errors.extend(f"rate_limit: {error}" for error in get_rate_limit_settings().validate(base))
    errors.extend(f"dispatch: {error}" for error in get_dispatch_settings().validate())
    errors.extend(f"whatsapp: {error}" for error in get_whatsapp_settings().validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


__all__ = [
    "SERVICE_NAME",
    "GatewayContainer",
    "build_container",
    "initialize_app",
    "validate_runtime_settings",
]
