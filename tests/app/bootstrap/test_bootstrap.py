"""Testes do composition root (settings → container)."""

from __future__ import annotations

import logging

import pytest

from app.bootstrap import build_container, validate_runtime_settings
from app.bootstrap.dependencies import create_rate_window_store
from app.infra.protocol.mock_client import MockProtocolClientFactory
from app.infra.stores import FileCredentialStore, FilePairingArtifactStore, MemoryRateWindowStore
from config.settings import (
    RateLimitSettings,
    get_base_settings,
    get_dispatch_settings,
    get_rate_limit_settings,
    get_session_settings,
    get_whatsapp_settings,
)

_CACHED_GETTERS = (
    get_base_settings,
    get_session_settings,
    get_rate_limit_settings,
    get_dispatch_settings,
    get_whatsapp_settings,
)


@pytest.fixture(autouse=True)
def _fresh_settings():
    for getter in _CACHED_GETTERS:
        getter.cache_clear()
    yield
    for getter in _CACHED_GETTERS:
        getter.cache_clear()


class TestBuildContainer:
    @pytest.mark.asyncio
    async def test_defaults_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("AUTH_DIR", str(tmp_path / "auth"))
        monkeypatch.setenv("QR_DIR", str(tmp_path / "qr"))
        monkeypatch.setenv("RATE_LIMIT_MAX_MESSAGES", "3")
        monkeypatch.setenv("RATE_LIMIT_BACKEND", "memory")

        container = build_container()

        assert isinstance(container.client_factory, MockProtocolClientFactory)
        assert isinstance(container.rate_window_store, MemoryRateWindowStore)
        assert isinstance(container.credential_store, FileCredentialStore)
        assert isinstance(container.pairing_store, FilePairingArtifactStore)
        assert container.rate_limiter.max_messages == 3
        assert container.session_settings.auth_dir == str(tmp_path / "auth")
        await container.aclose()

    @pytest.mark.asyncio
    async def test_end_to_end_pairing_with_mock_backend(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("AUTH_DIR", str(tmp_path / "auth"))
        monkeypatch.setenv("QR_DIR", str(tmp_path / "qr"))
        monkeypatch.setenv("RATE_LIMIT_BACKEND", "memory")

        container = build_container()
        result = await container.pairing_provider.get_pairing_artifact("loja")

        assert result.artifact is not None
        assert result.artifact.content.startswith(b"\x89PNG")
        assert (tmp_path / "qr" / "loja.png").exists()
        await container.aclose()

    def test_unknown_rate_backend_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            create_rate_window_store(RateLimitSettings(backend="memcached"))  # type: ignore[arg-type]


class TestValidateRuntimeSettings:
    def test_development_only_warns(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("RATE_LIMIT_MAX_MESSAGES", "0")

        with caplog.at_level(logging.WARNING):
            validate_runtime_settings()

        assert any(record.message == "settings_validation_failed" for record in caplog.records)

    def test_production_with_mock_backend_fails_fast(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("PROTOCOL_BACKEND", "mock")
        monkeypatch.setenv("RATE_LIMIT_BACKEND", "memory")

        with pytest.raises(RuntimeError, match="PROTOCOL_BACKEND=mock proibido em production"):
            validate_runtime_settings()

    def test_valid_development_settings_pass(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        for name in ("RATE_LIMIT_MAX_MESSAGES", "RATE_LIMIT_BACKEND", "PORT"):
            monkeypatch.delenv(name, raising=False)

        validate_runtime_settings()
