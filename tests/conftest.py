# tests/conftest.py
from __future__ import annotations

import pytest

from zaremba.runtime import reset


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    """Every test gets its own empty workspace and a fresh runtime."""
    home = tmp_path / "ws"
    monkeypatch.setenv("ZAREMBA_HOME", str(home))
    reset()
    return home
