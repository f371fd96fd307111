"""Testes dos stores em memória."""

from __future__ import annotations

import pytest

from app.infra.stores.memory_stores import (
    MemoryCredentialStore,
    MemoryPairingArtifactStore,
    MemoryRateWindowStore,
)


class TestMemoryRateWindowStore:
    """Testes do MemoryRateWindowStore."""

    @pytest.mark.anyio
    async def test_append_and_list(self) -> None:
        """Deve listar timestamps em ordem de inserção."""
        store = MemoryRateWindowStore()
        await store.append("s1", 10.0, ttl_seconds=600)
        await store.append("s1", 20.0, ttl_seconds=600)

        assert await store.prune_and_list("s1", cutoff=0.0) == [10.0, 20.0]

    @pytest.mark.anyio
    async def test_prune_removes_entries_at_or_before_cutoff(self) -> None:
        """Entrada exatamente no cutoff já saiu da janela."""
        store = MemoryRateWindowStore()
        for ts in (10.0, 20.0, 30.0):
            await store.append("s1", ts, ttl_seconds=600)

        assert await store.prune_and_list("s1", cutoff=20.0) == [30.0]
        assert store.snapshot() == {"s1": [30.0]}

    @pytest.mark.anyio
    async def test_fully_pruned_window_is_dropped(self) -> None:
        """Janela vazia após poda não deve ficar retida."""
        store = MemoryRateWindowStore()
        await store.append("s1", 10.0, ttl_seconds=600)

        assert await store.prune_and_list("s1", cutoff=100.0) == []
        assert store.snapshot() == {}

    @pytest.mark.anyio
    async def test_delete(self) -> None:
        """Deve remover janela (idempotente)."""
        store = MemoryRateWindowStore()
        await store.append("s1", 10.0, ttl_seconds=600)

        assert await store.delete("s1") is True
        assert await store.delete("s1") is False
        assert await store.prune_and_list("s1", cutoff=0.0) == []


class TestMemoryCredentialStore:
    """Testes do MemoryCredentialStore."""

    @pytest.mark.anyio
    async def test_load_unknown_returns_empty(self) -> None:
        """Sessão sem credenciais carrega dicionário vazio."""
        store = MemoryCredentialStore()
        assert await store.load("nova") == {}

    @pytest.mark.anyio
    async def test_persist_returns_copies(self) -> None:
        """Mutar o dicionário carregado não deve afetar o store."""
        store = MemoryCredentialStore()
        await store.persist("s1", {"me": {"id": "5511@s.whatsapp.net"}})

        loaded = await store.load("s1")
        loaded["me"]["id"] = "outro"

        assert (await store.load("s1"))["me"]["id"] == "5511@s.whatsapp.net"

    @pytest.mark.anyio
    async def test_delete(self) -> None:
        """Deve apagar credenciais (idempotente)."""
        store = MemoryCredentialStore()
        await store.persist("s1", {"registered": True})

        assert await store.delete("s1") is True
        assert await store.delete("s1") is False
        assert await store.load("s1") == {}


class TestMemoryPairingArtifactStore:
    """Testes do MemoryPairingArtifactStore."""

    @pytest.mark.anyio
    async def test_save_overwrites_previous_artifact(self) -> None:
        """Novo desafio substitui o anterior."""
        store = MemoryPairingArtifactStore()
        await store.save("s1", "2@old")
        reference = await store.save("s1", "2@new")

        artifact = await store.load("s1")

        assert artifact is not None
        assert artifact.reference == reference
        assert artifact.content == b"2@new"

    @pytest.mark.anyio
    async def test_custom_renderer(self) -> None:
        """Renderer injetado define o conteúdo."""
        store = MemoryPairingArtifactStore(renderer=lambda code: b"PNG:" + code.encode())
        await store.save("s1", "abc")

        artifact = await store.load("s1")

        assert artifact is not None
        assert artifact.content == b"PNG:abc"

    @pytest.mark.anyio
    async def test_exists_and_delete(self) -> None:
        """exists/delete refletem o estado do store."""
        store = MemoryPairingArtifactStore()
        await store.save("s1", "2@x")

        assert await store.exists("s1") is True
        assert await store.delete("s1") is True
        assert await store.exists("s1") is False
        assert await store.load("s1") is None
