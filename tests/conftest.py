"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database. The shared engine in
``db.client`` is process-global and refuses to rebind to a different URL, so it
is reset before and after each test, and ``DATABASE_URL`` is pointed at the
test's own database so code paths that read the environment stay hermetic.
Logging configured by a test (the CLI does it on every invocation) is undone
afterwards.
"""

# ruff: noqa: E402, I001
from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace `packages/` and `libs/db/src` dirs are on sys.path
_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from db.client import reset_engine
from money_tracker.logging_setup import reset_logging

from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Bootstrap a per-test database and expose its URL."""

    monkeypatch.delenv("MONEY_TRACKER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("MT_INGEST_QUEUE_SIZE", raising=False)
    reset_engine()
    url = bootstrap_sqlite_db(tmp_path / "tracker.db")
    monkeypatch.setenv("DATABASE_URL", url)
    assert os.environ["DATABASE_URL"] == url
    yield url
    reset_engine()
    reset_logging()
