"""Bulk import/export of active-ledger expenses.

Exported rows carry five fields: ``date, item, cost, bank, category``.
Importing is forgiving per field and strict per row:

- a row missing ``item``, ``cost`` or ``bank`` is skipped (and counted);
- an unparseable or missing date becomes the ingestion time;
- an unparseable cost becomes ``0``;
- a missing or non-integer category becomes uncategorized.

One bad row never aborts the batch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation
from os import PathLike
from typing import Any

from .budget_cycle import load_archived_expenses
from .ingest.utils import load_expense_rows, save_expense_rows
from .logging_setup import get_logger
from .models import ExpenseDraft, ExpenseSnapshot, ExpenseView, ImportReport
from .persistence import LEDGER_LOCK, Persistence, to_money

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Accepted on import in addition to DATE_FORMAT.
_EXTRA_DATE_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d")

_logger = get_logger("money_tracker.transfer")


# ---------------------------
# Row <-> expense mapping
# ---------------------------


def to_record(expense: ExpenseView | ExpenseSnapshot) -> dict[str, Any]:
    return {
        "date": expense.occurred_at.strftime(DATE_FORMAT),
        "item": expense.item,
        "cost": f"{to_money(expense.cost):.2f}",
        "bank": expense.bank,
        "category": expense.category_id,
    }


def _parse_date(raw: Any, *, fallback: datetime) -> datetime:
    if isinstance(raw, datetime):
        return raw.replace(microsecond=0)
    if raw is None:
        return fallback
    s = str(raw).strip()
    for fmt in (DATE_FORMAT, *_EXTRA_DATE_FORMATS):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return fallback


def _parse_cost(raw: Any) -> Decimal:
    try:
        value = to_money(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0.00")
    return value if value.is_finite() else Decimal("0.00")


def _parse_category(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    s = str(raw).strip()
    try:
        return int(s)
    except ValueError:
        pass
    # Spreadsheet round-trips may render ids as "3.0".
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return int(d) if d.is_finite() and d == d.to_integral_value() else None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_draft(row: Mapping[str, Any] | None, *, now: datetime) -> ExpenseDraft | None:
    """Map one imported row to a draft, or ``None`` when a required field is missing."""

    if row is None:
        return None
    item, cost, bank = row.get("item"), row.get("cost"), row.get("bank")
    if _is_missing(item) or _is_missing(cost) or bank is None:
        return None
    return ExpenseDraft(
        item=str(item),
        cost=_parse_cost(cost),
        bank=str(bank),
        occurred_at=_parse_date(row.get("date"), fallback=now),
        category_id=_parse_category(row.get("category")),
    )


# ---------------------------
# Service operations
# ---------------------------


def import_expenses(
    store: Persistence,
    rows: Iterable[Mapping[str, Any] | None],
    *,
    replace: bool = False,
    now: datetime | None = None,
) -> ImportReport:
    """Insert the valid rows into the active ledger.

    With ``replace=True`` the active ledger is cleared first, in the same unit
    of work as the inserts.
    """

    when = now or datetime.now().replace(microsecond=0)
    drafts: list[ExpenseDraft] = []
    skipped: list[int] = []
    for idx, row in enumerate(rows):
        draft = to_draft(row, now=when)
        if draft is None:
            _logger.warning("skipping import row %d: missing item, cost or bank", idx)
            skipped.append(idx)
            continue
        drafts.append(draft)

    with LEDGER_LOCK:
        if replace:
            store.clear_expenses()
        imported = store.insert_expenses(drafts)
    _logger.info("imported %d expenses (%d skipped)", imported, len(skipped))
    return ImportReport(imported=imported, skipped=len(skipped), skipped_rows=tuple(skipped))


def import_expenses_from_file(
    store: Persistence, path: str | PathLike[str], *, replace: bool = False
) -> ImportReport:
    return import_expenses(store, load_expense_rows(path), replace=replace)


def export_expenses(store: Persistence) -> list[dict[str, Any]]:
    return [to_record(e) for e in store.list_expenses()]


def export_expenses_to_file(store: Persistence, path: str | PathLike[str]) -> int:
    return save_expense_rows(path, export_expenses(store))


def export_archived_month(
    store: Persistence, month_key: str, path: str | PathLike[str]
) -> int:
    """Write the archived snapshot of ``month_key`` in the export format."""

    record = store.get_monthly_record(month_key)
    if record is None:
        raise LookupError(f"no monthly record for {month_key!r}")
    snapshots: Sequence[ExpenseSnapshot] = load_archived_expenses(record)
    return save_expense_rows(path, [to_record(s) for s in snapshots])


__all__ = [
    "DATE_FORMAT",
    "export_archived_month",
    "export_expenses",
    "export_expenses_to_file",
    "import_expenses",
    "import_expenses_from_file",
    "to_draft",
    "to_record",
]
