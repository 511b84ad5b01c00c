"""Category domain helpers and service operations.

Categories are a flat list of names referenced weakly by expenses. Names are
unique by convention only: creating a name that already exists returns the
existing row instead of adding a twin, but nothing in storage enforces it.
Deleting a category leaves expenses pointing at a dangling id; those resolve to
"Uncategorized" at display time.

Exports
-------
- ``normalize_name(...)`` and ``validate_name(...)``: shared input checks.
- ``create_category(...)``, ``rename_category(...)``, ``delete_category(...)``,
  ``find_category_by_name(...)``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import CategoryView
from .persistence import Persistence

# ---------------------------
# Name normalization/validation
# ---------------------------

_ALLOWED_RE = re.compile(r"^[\w &\-/'.]+$")

_logger = get_logger("money_tracker.categories")


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, min_len: int = 1, max_len: int = 64) -> NameValidation:
    """Lightweight validation for category names.

    Rules
    -----
    - Trim whitespace; enforce length bounds 1..64.
    - Allowed characters: letters, digits, spaces, and ``& - / ' .``.
    """

    n = normalize_name(name)
    if len(n) < min_len:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    if not _ALLOWED_RE.match(n):
        return NameValidation(False, "Only letters, numbers, spaces, and & - / ' . are allowed")
    return NameValidation(True, None)


def _checked(name: str) -> str:
    n = normalize_name(name)
    v = validate_name(n)
    if not v.ok:
        raise ValueError(f"Invalid category name: {v.reason}")
    return n


# ---------------------------
# Service operations
# ---------------------------


def find_category_by_name(store: Persistence, name: str) -> CategoryView | None:
    """Return the first category whose name matches ``name`` (case-insensitive)."""

    wanted = normalize_name(name).casefold()
    for c in store.list_categories():
        if c.name.casefold() == wanted:
            return c
    return None


def create_category(store: Persistence, name: str) -> tuple[CategoryView, bool]:
    """Create ``name`` unless it already exists.

    Returns ``(category, created)``.
    """

    n = _checked(name)
    existing = find_category_by_name(store, n)
    if existing is not None:
        return existing, False
    row = store.insert_category(n)
    _logger.info("created category %r (id=%d)", row.name, row.id)
    return row, True


def rename_category(store: Persistence, category_id: int, name: str) -> CategoryView:
    n = _checked(name)
    if not store.update_category(category_id, n):
        raise LookupError(f"category not found: {category_id}")
    return CategoryView(id=category_id, name=n)


def delete_category(store: Persistence, category_id: int) -> None:
    if not store.delete_category(category_id):
        raise LookupError(f"category not found: {category_id}")
    _logger.info("deleted category id=%d; referencing expenses become uncategorized", category_id)


__all__ = [
    "NameValidation",
    "create_category",
    "delete_category",
    "find_category_by_name",
    "normalize_name",
    "rename_category",
    "validate_name",
]
