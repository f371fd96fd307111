"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    GatewayError,
    InfrastructureError,
    InvalidRequestError,
    MediaFetchError,
    PairingTimeoutError,
    RateLimitedError,
    RecipientNotFoundError,
    RedisConnectionError,
    SessionNotReadyError,
    TransientSendError,
    UnexpectedProtocolError,
)

__all__ = [
    "GatewayError",
    "InfrastructureError",
    "InvalidRequestError",
    "MediaFetchError",
    "PairingTimeoutError",
    "RateLimitedError",
    "RecipientNotFoundError",
    "RedisConnectionError",
    "SessionNotReadyError",
    "TransientSendError",
    "UnexpectedProtocolError",
]
