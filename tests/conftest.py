from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

import portfolio_registry.data.db as app_db
from portfolio_registry.data.db import dispose_engine, init_db


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Point every test at its own temporary SQLite database."""
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.delenv("DB_ECHO", raising=False)
    app_db._engine = None
    app_db._SessionLocal = None
    init_db()
    yield db_path
    # Dispose engine to release connections
    dispose_engine()
