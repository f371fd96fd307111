"""Configuração do pytest para o gateway multi-sessão."""

import sys
from pathlib import Path

import pytest

# Adiciona src/ (imports absolutos) e a raiz (tests.fakes) ao PYTHONPATH
root_path = Path(__file__).parent.parent
for path in (root_path / "src", root_path):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
