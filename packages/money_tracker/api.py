"""Public API and orchestration for the ``money_tracker`` package.

Functions here own the transaction scope: each opens one session through
``db.client.session_scope`` and commits or rolls back as a unit. Lower-level
modules take a :class:`~money_tracker.persistence.Persistence` and leave scope
to the caller.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from db.client import session_scope
from sqlalchemy.exc import SQLAlchemyError

from .budget_cycle import (
    BudgetCycleEngine,
    RolloverError,
    RolloverResult,
    ensure_month_record,
)
from .ledger import (
    CategoryBreakdown,
    category_breakdown,
    format_remaining,
    remaining,
    total_spent,
)
from .logging_setup import get_logger
from .models import MonthlyRecordView, UserSettings
from .payday import days_to_next_payday, month_key_sort_value
from .persistence import LEDGER_LOCK, ChangeFeed, Persistence, SqlPersistence
from .settings import load_or_init_settings

_logger = get_logger("money_tracker.api")


@contextmanager
def open_store(
    *, database_url: str | None = None, feed: ChangeFeed | None = None
) -> Iterator[SqlPersistence]:
    """Yield a :class:`SqlPersistence` bound to one transactional session."""

    with session_scope(database_url=database_url) as session:
        yield SqlPersistence(session, feed=feed)


# ---------------------------
# Daily check
# ---------------------------


def daily_check(
    store: Persistence, today: date, *, engine: BudgetCycleEngine | None = None
) -> RolloverResult:
    """Open this month's record if needed, then evaluate the rollover."""

    ensure_month_record(store, today)
    settings = load_or_init_settings(store)
    return (engine or BudgetCycleEngine()).check(store, settings, today)


def run_daily_check(
    *,
    database_url: str | None = None,
    today: date | None = None,
    feed: ChangeFeed | None = None,
) -> RolloverResult:
    """Run :func:`daily_check` as one serialized unit of work.

    Safe to call on every launch. Any storage failure rolls back the whole
    unit (archive write and ledger clear included) and surfaces as
    :class:`~money_tracker.budget_cycle.RolloverError`.
    """

    today = today or date.today()
    with LEDGER_LOCK:
        try:
            with open_store(database_url=database_url, feed=feed) as store:
                return daily_check(store, today)
        except SQLAlchemyError as e:
            _logger.error("daily check for %s failed and was rolled back: %s", today, e)
            raise RolloverError(f"daily check for {today} failed: {e}") from e


# ---------------------------
# Dashboard summary
# ---------------------------


@dataclass(frozen=True, slots=True)
class Summary:
    settings: UserSettings
    total_spent: Decimal
    remaining: Decimal
    remaining_display: str
    days_to_payday: int
    breakdown: CategoryBreakdown
    pending_candidates: int
    expense_count: int


def build_summary(store: Persistence, today: date) -> Summary:
    settings = load_or_init_settings(store)
    expenses = store.list_expenses()
    spent = total_spent(expenses)
    left = remaining(settings.monthly_budget, spent)
    return Summary(
        settings=settings,
        total_spent=spent,
        remaining=left,
        remaining_display=format_remaining(left),
        days_to_payday=days_to_next_payday(settings.payday, today),
        breakdown=category_breakdown(
            expenses, store.list_categories(), settings.pie_chart_threshold_percent
        ),
        pending_candidates=len(store.list_candidates()),
        expense_count=len(expenses),
    )


def list_month_records(store: Persistence) -> list[MonthlyRecordView]:
    """All monthly records, newest month first (chronological, not lexicographic)."""

    return sorted(
        store.list_monthly_records(),
        key=lambda r: month_key_sort_value(r.month_key),
        reverse=True,
    )


__all__ = [
    "Summary",
    "build_summary",
    "daily_check",
    "list_month_records",
    "open_store",
    "run_daily_check",
]
