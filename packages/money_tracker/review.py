"""Turning pending candidates into committed expenses, and editing expenses.

User input is validated here, at the entry boundary: a blank item or a
non-numeric/negative cost raises ``ValueError`` and never reaches storage.
Operations that add to the active ledger hold ``LEDGER_LOCK`` so they cannot
interleave with a rollover.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from .categories import create_category, find_category_by_name
from .logging_setup import get_logger
from .models import ExpenseDraft, ExpenseView
from .persistence import LEDGER_LOCK, Persistence, to_money

_logger = get_logger("money_tracker.review")


def parse_cost(raw: Decimal | float | int | str) -> Decimal:
    """Validate a user-entered cost and return it rounded to cents."""

    if isinstance(raw, bool):
        raise ValueError("Cost must be a number")
    try:
        value = to_money(str(raw).strip())
    except InvalidOperation as e:
        raise ValueError(f"Cost must be a number, got {raw!r}") from e
    if not value.is_finite():
        raise ValueError(f"Cost must be a finite number, got {raw!r}")
    if value < 0:
        raise ValueError("Cost cannot be negative")
    return value


def parse_item(raw: str | None) -> str:
    if raw is None or not raw.strip():
        raise ValueError("Item cannot be blank")
    return raw


@dataclass(frozen=True, slots=True)
class CategoryChoice:
    """Which category to attach.

    ``name`` picks an existing category; ``new_name`` creates one (or reuses
    an existing one with the same name). Neither means uncategorized. A
    ``name`` that matches nothing also leaves the expense uncategorized.
    """

    name: str | None = None
    new_name: str | None = None


def _resolve_choice(store: Persistence, choice: CategoryChoice | None) -> int | None:
    if choice is None:
        return None
    if choice.new_name and choice.new_name.strip():
        category, _created = create_category(store, choice.new_name)
        return category.id
    if choice.name:
        found = find_category_by_name(store, choice.name)
        if found is None:
            _logger.info("category %r not found; saving as uncategorized", choice.name)
            return None
        return found.id
    return None


def confirm_candidate(
    store: Persistence,
    candidate_id: int,
    *,
    category: CategoryChoice | None = None,
    item: str | None = None,
    cost: Decimal | float | str | None = None,
    bank: str | None = None,
    occurred_at: datetime | None = None,
) -> ExpenseView:
    """Commit a pending candidate as an expense and remove the candidate.

    ``item``, ``cost`` and ``bank`` override the scraped values (the user may
    correct them during review). Both writes share the caller's unit of work.
    """

    with LEDGER_LOCK:
        pending = store.get_candidate(candidate_id)
        if pending is None:
            raise LookupError(f"candidate not found: {candidate_id}")

        draft = ExpenseDraft(
            item=parse_item(item if item is not None else pending.item),
            cost=parse_cost(cost if cost is not None else pending.cost),
            bank=bank if bank is not None else pending.bank,
            occurred_at=occurred_at or datetime.now().replace(microsecond=0),
            category_id=_resolve_choice(store, category),
        )
        expense = store.insert_expense(draft)
        store.delete_candidate(candidate_id)
    _logger.info("confirmed candidate id=%d as expense id=%d", candidate_id, expense.id)
    return expense


def dismiss_candidate(store: Persistence, candidate_id: int) -> None:
    if not store.delete_candidate(candidate_id):
        raise LookupError(f"candidate not found: {candidate_id}")


def add_manual_expense(
    store: Persistence,
    *,
    item: str,
    cost: Decimal | float | str,
    bank: str = "",
    category: CategoryChoice | None = None,
    occurred_at: datetime | None = None,
) -> ExpenseView:
    with LEDGER_LOCK:
        draft = ExpenseDraft(
            item=parse_item(item),
            cost=parse_cost(cost),
            bank=bank,
            occurred_at=occurred_at or datetime.now().replace(microsecond=0),
            category_id=_resolve_choice(store, category),
        )
        return store.insert_expense(draft)


def set_expense_category(
    store: Persistence, expense_id: int, category: CategoryChoice | None
) -> ExpenseView:
    """Attach, change or clear the category of an active expense."""

    category_id = _resolve_choice(store, category)
    if not store.update_expense_category(expense_id, category_id):
        raise LookupError(f"expense not found: {expense_id}")
    updated = store.get_expense(expense_id)
    assert updated is not None
    return updated


def delete_expense(store: Persistence, expense_id: int) -> None:
    if not store.delete_expense(expense_id):
        raise LookupError(f"expense not found: {expense_id}")


__all__ = [
    "CategoryChoice",
    "add_manual_expense",
    "confirm_candidate",
    "delete_expense",
    "dismiss_candidate",
    "parse_cost",
    "parse_item",
    "set_expense_category",
]
