"""Agregador de settings do gateway multi-sessão.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    ProtocolBackend,
    SessionSettings,
    get_base_settings,
    get_session_settings,
)

# Dispatch settings
from config.settings.dispatch import (
    DispatchSettings,
    get_dispatch_settings,
)

# Rate limit settings
from config.settings.rate_limit import (
    RateLimitSettings,
    RateWindowBackend,
    get_rate_limit_settings,
)

# Channel-specific settings
from config.settings.whatsapp import (
    USER_JID_SUFFIX,
    WhatsAppSettings,
    get_whatsapp_settings,
)

__all__ = [
    # Constants
    "USER_JID_SUFFIX",
    # Base
    "BaseSettings",
    # Dispatch
    "DispatchSettings",
    "Environment",
    "ProtocolBackend",
    # Rate limit
    "RateLimitSettings",
    "RateWindowBackend",
    "SessionSettings",
    # Channels
    "WhatsAppSettings",
    "get_base_settings",
    "get_dispatch_settings",
    "get_rate_limit_settings",
    "get_session_settings",
    "get_whatsapp_settings",
]
