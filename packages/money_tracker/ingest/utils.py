"""Ingest utilities shared by CLI commands and library callers.

Picks the expense file adapter from the file extension: ``.json`` uses the JSON
backup adapter, anything else the CSV adapter.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import Any


def _adapter_for(path: Path):
    from .adapters import expense_csv, expense_json

    return expense_json if path.suffix.lower() == ".json" else expense_csv


def load_expense_rows(path: str | PathLike[str]) -> list[Mapping[str, Any] | None]:
    """Read every row of an expense export file into memory."""

    p = Path(path)
    with p.open(encoding="utf-8", newline="") as f:
        return list(_adapter_for(p).read_rows(f))


def save_expense_rows(path: str | PathLike[str], rows: Iterable[Mapping[str, Any]]) -> int:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8", newline="") as f:
        return _adapter_for(p).write_rows(f, rows)


__all__ = ["load_expense_rows", "save_expense_rows"]
