"""Protocolos e contratos do core da aplicação."""

from .credential_store import CredentialStoreProtocol, Credentials
from .media_fetcher import FetchedMedia, RemoteMediaFetcherProtocol
from .pairing_store import PairingArtifact, PairingArtifactStoreProtocol
from .protocol_client import (
    DisconnectReason,
    LifecycleEvent,
    LifecycleEventKind,
    OpenOptions,
    ProtocolClientFactoryProtocol,
    ProtocolHandleProtocol,
    VersionInfo,
)
from .rate_window_store import RateWindowStoreProtocol

__all__ = [
    "CredentialStoreProtocol",
    "Credentials",
    "DisconnectReason",
    "FetchedMedia",
    "LifecycleEvent",
    "LifecycleEventKind",
    "OpenOptions",
    "PairingArtifact",
    "PairingArtifactStoreProtocol",
    "ProtocolClientFactoryProtocol",
    "ProtocolHandleProtocol",
    "RateWindowStoreProtocol",
    "RemoteMediaFetcherProtocol",
    "VersionInfo",
]
