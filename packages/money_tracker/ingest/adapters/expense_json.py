"""Adapter for the JSON backup format: a list of objects with the keys
``date, item, cost, bank, category``.

Reading accepts either that list or an object wrapping it under
``"expenses"``. Non-object elements are passed through as ``None`` so the
importer can count them as skipped rows.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, TextIO

from .expense_csv import FIELDS


def read_rows(file: TextIO) -> Iterator[dict[str, Any] | None]:
    data = json.load(file)
    if isinstance(data, Mapping):
        data = data.get("expenses", [])
    if not isinstance(data, list):
        raise ValueError("JSON backup must be a list of expense objects")
    for element in data:
        if not isinstance(element, Mapping):
            yield None
            continue
        yield {name: element.get(name) for name in FIELDS}


def write_rows(file: TextIO, rows: Iterable[Mapping[str, Any]]) -> int:
    payload = [{name: r.get(name) for name in FIELDS} for r in rows]
    json.dump(payload, file, indent=2, ensure_ascii=False)
    file.write("\n")
    return len(payload)


__all__ = ["read_rows", "write_rows"]
