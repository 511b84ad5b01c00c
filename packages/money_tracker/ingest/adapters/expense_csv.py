"""Adapter for the tabular expense export/import format.

CSV header (written exactly, matched case-insensitively on read):
``Date, Item, Cost, Bank, Category``

- ``Date``: ``YYYY-MM-DD HH:MM:SS`` local time.
- ``Cost``: plain decimal, two places.
- ``Category``: the category id, or empty when uncategorized.

Output rows are plain dicts with keys ``date, item, cost, bank, category``.
Cells missing from a short row come back as ``None``; parsing and defaulting
are left to :mod:`money_tracker.transfer`.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, TextIO

HEADER: tuple[str, ...] = ("Date", "Item", "Cost", "Bank", "Category")
FIELDS: tuple[str, ...] = ("date", "item", "cost", "bank", "category")

REQUIRED_COLUMNS: set[str] = {"item", "cost", "bank"}


def read_rows(file: TextIO) -> Iterator[dict[str, Any]]:
    """Yield one dict per data row.

    Raises ``csv.Error`` when the header is absent or lacks a required column.
    """

    reader = csv.reader(file)
    try:
        header = next(reader)
    except StopIteration:
        raise csv.Error("expense CSV is empty; expected a header row") from None

    positions = {name.strip().lower(): i for i, name in enumerate(header)}
    missing = sorted(col for col in REQUIRED_COLUMNS if col not in positions)
    if missing:
        raise csv.Error("expense CSV header mismatch. Missing columns: " + ", ".join(missing))

    for cells in reader:
        if not any(c.strip() for c in cells):
            continue
        row: dict[str, Any] = {}
        for name in FIELDS:
            i = positions.get(name)
            row[name] = cells[i] if i is not None and i < len(cells) else None
        yield row


def write_rows(file: TextIO, rows: Iterable[Mapping[str, Any]]) -> int:
    writer = csv.writer(file)
    writer.writerow(HEADER)
    n = 0
    for r in rows:
        writer.writerow(["" if r.get(f) is None else r.get(f) for f in FIELDS])
        n += 1
    return n


__all__ = ["FIELDS", "HEADER", "read_rows", "write_rows"]
