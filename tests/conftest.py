"""
conftest.py - Shared pytest fixtures for replay tests

Provides common fixtures used across unit, functional and conformance tests:
- Ledger fixtures (lazy, and parametrized over both index modes)
- A CSV file writer for source and command line tests

Transaction builders live in tests/tx_builders.py.
"""

import pytest
from typing import Callable

from txreplay import Ledger


@pytest.fixture
def ledger() -> Ledger:
    """Empty ledger with lazy indexing."""
    return Ledger("test")


@pytest.fixture(params=[False, True], ids=["lazy", "eager"])
def index_mode(request) -> bool:
    """Run a test under both Ledger Index modes."""
    return request.param


@pytest.fixture
def write_input(tmp_path) -> Callable[..., str]:
    """Write lines to a CSV file under tmp_path and return its path."""
    def _write(*lines: str, name: str = "transactions.csv") -> str:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return str(path)
    return _write
