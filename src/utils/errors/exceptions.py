"""Exceções de domínio do gateway multi-sessão.

Hierarquia:
    GatewayError
    ├── SessionNotReadyError      (400) sessão ausente ou não conectada
    ├── InvalidRequestError       (400) payload inválido
    ├── RecipientNotFoundError    (404) destinatário não registrado na rede
    ├── RateLimitedError          (429) janela de envio esgotada
    ├── TransientSendError        (500) falha de envio recuperável (bulk retry)
    ├── UnexpectedProtocolError   (500) falha inesperada do cliente de protocolo
    ├── MediaFetchError           (500) falha ao baixar imagem remota
    └── PairingTimeoutError       (504) artefato de pareamento não ficou pronto

    InfrastructureError
    └── RedisConnectionError
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base das falhas por requisição convertidas em respostas estruturadas."""

    code: str = "GATEWAY_ERROR"
    http_status: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class SessionNotReadyError(GatewayError):
    """Sessão inexistente ou fora do estado CONNECTED."""

    code = "SESSION_NOT_READY"
    http_status = 400

    def __init__(self, session_id: str = "", message: str = "Session not connected") -> None:
        super().__init__(message)
        self.session_id = session_id


class InvalidRequestError(GatewayError):
    """Requisição rejeitada antes de qualquer verificação de sessão."""

    code = "INVALID_REQUEST"
    http_status = 400


class RecipientNotFoundError(GatewayError):
    """Destinatário não existe na rede de mensagens."""

    code = "RECIPIENT_NOT_FOUND"
    http_status = 404

    def __init__(self, recipient: str = "") -> None:
        super().__init__("Number not registered on WhatsApp")
        self.recipient = recipient


class RateLimitedError(GatewayError):
    """Envio rejeitado pelo rate limiter da sessão."""

    code = "RATE_LIMITED"
    http_status = 429

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            f"Rate limit exceeded. Try again in {retry_after_seconds} seconds."
        )
        self.retry_after_seconds = retry_after_seconds


class TransientSendError(GatewayError):
    """Falha de envio que pode ser recuperada com nova tentativa."""

    code = "TRANSIENT_SEND_FAILURE"
    http_status = 500


class UnexpectedProtocolError(GatewayError):
    """Falha inesperada reportada pelo cliente de protocolo."""

    code = "UNEXPECTED_PROTOCOL_ERROR"
    http_status = 500


class MediaFetchError(GatewayError):
    """Falha ao baixar imagem remota informada por URL."""

    code = "MEDIA_FETCH_FAILED"
    http_status = 500


class PairingTimeoutError(GatewayError):
    """Artefato de pareamento não ficou disponível dentro do timeout."""

    code = "PAIRING_TIMEOUT"
    http_status = 504

    def __init__(self, session_id: str = "", timeout_seconds: float = 0.0) -> None:
        super().__init__("QR generation timeout")
        self.session_id = session_id
        self.timeout_seconds = timeout_seconds


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""
