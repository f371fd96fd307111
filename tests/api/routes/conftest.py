"""Fixtures das rotas HTTP."""

from __future__ import annotations

from pathlib import Path

import pytest_asyncio

from tests.fakes.gateway_harness import gateway_harness


@pytest_asyncio.fixture
async def gateway(tmp_path: Path):
    async with gateway_harness(tmp_path) as harness:
        yield harness
