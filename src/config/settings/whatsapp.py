"""Settings específicas da rede WhatsApp.

Identidade de navegador anunciada ao abrir o handle de protocolo e
sufixo de endereçamento dos destinatários.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

# Sufixo de JID para contas individuais
USER_JID_SUFFIX: str = "@s.whatsapp.net"


@dataclass(frozen=True)
class WhatsAppSettings:
    """Configurações do canal WhatsApp.

    Attributes:
        browser_name: Nome do cliente exibido no dispositivo pareado
        browser_agent: Navegador anunciado
        browser_version: Versão anunciada
        recipient_suffix: Sufixo aplicado a números sem domínio
    """

    browser_name: str = "MultiBot"
    browser_agent: str = "Chrome"
    browser_version: str = "1.0"
    recipient_suffix: str = USER_JID_SUFFIX

    @property
    def browser(self) -> tuple[str, str, str]:
        """Tripla de identidade (nome, navegador, versão)."""
        return (self.browser_name, self.browser_agent, self.browser_version)

    def validate(self) -> list[str]:
        """Valida configurações mínimas de WhatsApp.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not all(self.browser):
            errors.append("WHATSAPP_BROWSER_* não podem ser vazios")

        if not self.recipient_suffix.startswith("@"):
            errors.append("WHATSAPP_RECIPIENT_SUFFIX deve começar com '@'")

        return errors


def _load_from_env() -> WhatsAppSettings:
    """Carrega WhatsAppSettings a partir de variáveis de ambiente."""
    return WhatsAppSettings(
        browser_name=os.getenv("WHATSAPP_BROWSER_NAME", "MultiBot"),
        browser_agent=os.getenv("WHATSAPP_BROWSER_AGENT", "Chrome"),
        browser_version=os.getenv("WHATSAPP_BROWSER_VERSION", "1.0"),
        recipient_suffix=os.getenv("WHATSAPP_RECIPIENT_SUFFIX", USER_JID_SUFFIX),
    )


@lru_cache(maxsize=1)
def get_whatsapp_settings() -> WhatsAppSettings:
    """Retorna instância cacheada de WhatsAppSettings.

    A cache garante singleton para múltiplas injeções.
    """
    return _load_from_env()
