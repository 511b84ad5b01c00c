"""Persistence integration for money_tracker.

The core talks to storage through the small :class:`Persistence` protocol.
:class:`SqlPersistence` implements it over a SQLAlchemy ``Session`` using the
ORM models owned by ``libs/db``. Callers own the transaction scope (usually
``db.client.session_scope``): every call made through one instance commits or
rolls back together.

Scope:
- get-all / insert / update / delete / clear-all for expenses, candidates and
  categories; monthly records by key; the settings singleton.
- Change notifications published after commit through :class:`ChangeFeed`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from db.models.tracker import (
    SETTINGS_ROW_ID,
    MtCandidate,
    MtCategory,
    MtExpense,
    MtMonthlyRecord,
    MtUserSettings,
)
from sqlalchemy import delete, event, select
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .models import (
    Candidate,
    CandidateView,
    CategoryView,
    ExpenseDraft,
    ExpenseView,
    MonthlyRecordView,
    UserSettings,
)

# Serializes the rollover unit of work against operations that add expenses to
# the active ledger. Re-entrant so orchestration helpers can nest.
LEDGER_LOCK = threading.RLock()

# Entity names published on the change feed.
EXPENSES = "expenses"
CANDIDATES = "candidates"
CATEGORIES = "categories"
MONTHLY_RECORDS = "monthly_records"
SETTINGS = "settings"

_logger = get_logger("money_tracker.persistence")


def to_money(raw: Decimal | float | int | str) -> Decimal:
    return Decimal(str(raw)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ---------------------------
# Change notifications
# ---------------------------

ChangeListener = Callable[[frozenset[str]], None]


class ChangeFeed:
    """Fan-out of "these entities changed" events for live UI refresh."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, entities: Iterable[str]) -> None:
        changed = frozenset(entities)
        if not changed:
            return
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(changed)
            except Exception:
                # A broken subscriber must not fail the write that triggered it.
                _logger.exception("change listener %r failed", listener)


# Process-wide default feed; hosts subscribe here.
default_feed = ChangeFeed()


# ---------------------------
# Abstract interface
# ---------------------------


class Persistence(Protocol):
    def list_expenses(self) -> list[ExpenseView]: ...
    def get_expense(self, expense_id: int) -> ExpenseView | None: ...
    def insert_expense(self, draft: ExpenseDraft) -> ExpenseView: ...
    def insert_expenses(self, drafts: Iterable[ExpenseDraft]) -> int: ...
    def update_expense_category(self, expense_id: int, category_id: int | None) -> bool: ...
    def delete_expense(self, expense_id: int) -> bool: ...
    def clear_expenses(self) -> int: ...

    def list_candidates(self) -> list[CandidateView]: ...
    def get_candidate(self, candidate_id: int) -> CandidateView | None: ...
    def insert_candidate(self, candidate: Candidate, detected_at: datetime) -> CandidateView: ...
    def delete_candidate(self, candidate_id: int) -> bool: ...
    def clear_candidates(self) -> int: ...

    def list_categories(self) -> list[CategoryView]: ...
    def insert_category(self, name: str) -> CategoryView: ...
    def update_category(self, category_id: int, name: str) -> bool: ...
    def delete_category(self, category_id: int) -> bool: ...

    def list_monthly_records(self) -> list[MonthlyRecordView]: ...
    def get_monthly_record(self, month_key: str) -> MonthlyRecordView | None: ...
    def insert_monthly_record(self, record: MonthlyRecordView) -> None: ...
    def update_monthly_record(self, record: MonthlyRecordView) -> None: ...

    def get_settings(self) -> UserSettings | None: ...
    def save_settings(self, settings: UserSettings) -> None: ...


# ---------------------------
# SQLAlchemy implementation
# ---------------------------


def _expense_view(row: MtExpense) -> ExpenseView:
    return ExpenseView(
        id=row.id,
        item=row.item,
        cost=to_money(row.cost),
        bank=row.bank,
        occurred_at=row.occurred_at,
        category_id=row.category_id,
    )


def _candidate_view(row: MtCandidate) -> CandidateView:
    return CandidateView(
        id=row.id,
        item=row.item,
        cost=to_money(row.cost),
        bank=row.bank,
        detected_at=row.detected_at,
    )


def _record_view(row: MtMonthlyRecord) -> MonthlyRecordView:
    return MonthlyRecordView(
        month_key=row.month_key,
        archived_json=row.archived_json,
        budget_at_archive=to_money(row.budget_at_archive),
    )


class SqlPersistence:
    """:class:`Persistence` over one SQLAlchemy session.

    Changed entity names are collected per session and published to ``feed``
    once the session commits; a rollback discards them.
    """

    def __init__(self, session: Session, *, feed: ChangeFeed | None = None) -> None:
        self.session = session
        self._feed = feed if feed is not None else default_feed
        self._pending: set[str] = set()
        event.listen(session, "after_commit", self._after_commit)
        event.listen(session, "after_rollback", self._after_rollback)

    def _after_commit(self, _session: Session) -> None:
        pending, self._pending = self._pending, set()
        self._feed.publish(pending)

    def _after_rollback(self, _session: Session) -> None:
        self._pending.clear()

    def _touch(self, entity: str) -> None:
        self._pending.add(entity)

    # ---- expenses ---------------------------------------------------------

    def list_expenses(self) -> list[ExpenseView]:
        rows = self.session.execute(
            select(MtExpense).order_by(MtExpense.occurred_at.desc(), MtExpense.id.desc())
        ).scalars()
        return [_expense_view(r) for r in rows]

    def get_expense(self, expense_id: int) -> ExpenseView | None:
        row = self.session.get(MtExpense, expense_id)
        return _expense_view(row) if row is not None else None

    def insert_expense(self, draft: ExpenseDraft) -> ExpenseView:
        row = MtExpense(
            item=draft.item,
            cost=to_money(draft.cost),
            bank=draft.bank,
            occurred_at=draft.occurred_at,
            category_id=draft.category_id,
        )
        self.session.add(row)
        self.session.flush()
        self._touch(EXPENSES)
        return _expense_view(row)

    def insert_expenses(self, drafts: Iterable[ExpenseDraft]) -> int:
        rows = [
            MtExpense(
                item=d.item,
                cost=to_money(d.cost),
                bank=d.bank,
                occurred_at=d.occurred_at,
                category_id=d.category_id,
            )
            for d in drafts
        ]
        if rows:
            self.session.add_all(rows)
            self.session.flush()
            self._touch(EXPENSES)
        return len(rows)

    def update_expense_category(self, expense_id: int, category_id: int | None) -> bool:
        row = self.session.get(MtExpense, expense_id)
        if row is None:
            return False
        row.category_id = category_id
        self.session.flush()
        self._touch(EXPENSES)
        return True

    def delete_expense(self, expense_id: int) -> bool:
        row = self.session.get(MtExpense, expense_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        self._touch(EXPENSES)
        return True

    def clear_expenses(self) -> int:
        result = self.session.execute(delete(MtExpense))
        self._touch(EXPENSES)
        return result.rowcount or 0

    # ---- candidates -------------------------------------------------------

    def list_candidates(self) -> list[CandidateView]:
        rows = self.session.execute(select(MtCandidate).order_by(MtCandidate.id)).scalars()
        return [_candidate_view(r) for r in rows]

    def get_candidate(self, candidate_id: int) -> CandidateView | None:
        row = self.session.get(MtCandidate, candidate_id)
        return _candidate_view(row) if row is not None else None

    def insert_candidate(self, candidate: Candidate, detected_at: datetime) -> CandidateView:
        row = MtCandidate(
            item=candidate.item,
            cost=to_money(candidate.cost),
            bank=candidate.bank,
            detected_at=detected_at,
        )
        self.session.add(row)
        self.session.flush()
        self._touch(CANDIDATES)
        return _candidate_view(row)

    def delete_candidate(self, candidate_id: int) -> bool:
        row = self.session.get(MtCandidate, candidate_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        self._touch(CANDIDATES)
        return True

    def clear_candidates(self) -> int:
        result = self.session.execute(delete(MtCandidate))
        self._touch(CANDIDATES)
        return result.rowcount or 0

    # ---- categories -------------------------------------------------------

    def list_categories(self) -> list[CategoryView]:
        rows = self.session.execute(select(MtCategory).order_by(MtCategory.id)).scalars()
        return [CategoryView(id=r.id, name=r.name) for r in rows]

    def insert_category(self, name: str) -> CategoryView:
        row = MtCategory(name=name)
        self.session.add(row)
        self.session.flush()
        self._touch(CATEGORIES)
        return CategoryView(id=row.id, name=row.name)

    def update_category(self, category_id: int, name: str) -> bool:
        row = self.session.get(MtCategory, category_id)
        if row is None:
            return False
        row.name = name
        self.session.flush()
        self._touch(CATEGORIES)
        return True

    def delete_category(self, category_id: int) -> bool:
        row = self.session.get(MtCategory, category_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        self._touch(CATEGORIES)
        return True

    # ---- monthly records --------------------------------------------------

    def list_monthly_records(self) -> list[MonthlyRecordView]:
        rows = self.session.execute(select(MtMonthlyRecord)).scalars()
        return [_record_view(r) for r in rows]

    def get_monthly_record(self, month_key: str) -> MonthlyRecordView | None:
        row = self.session.get(MtMonthlyRecord, month_key)
        return _record_view(row) if row is not None else None

    def insert_monthly_record(self, record: MonthlyRecordView) -> None:
        self.session.add(
            MtMonthlyRecord(
                month_key=record.month_key,
                archived_json=record.archived_json,
                budget_at_archive=to_money(record.budget_at_archive),
            )
        )
        self.session.flush()
        self._touch(MONTHLY_RECORDS)

    def update_monthly_record(self, record: MonthlyRecordView) -> None:
        row = self.session.get(MtMonthlyRecord, record.month_key)
        if row is None:
            raise LookupError(f"monthly record not found: {record.month_key!r}")
        row.archived_json = record.archived_json
        row.budget_at_archive = to_money(record.budget_at_archive)
        self.session.flush()
        self._touch(MONTHLY_RECORDS)

    # ---- settings ---------------------------------------------------------

    def get_settings(self) -> UserSettings | None:
        row = self.session.get(MtUserSettings, SETTINGS_ROW_ID)
        if row is None:
            return None
        return UserSettings(
            payday=row.payday,
            monthly_budget=to_money(row.monthly_budget),
            pie_chart_threshold_percent=row.pie_chart_threshold_percent,
        )

    def save_settings(self, settings: UserSettings) -> None:
        row = self.session.get(MtUserSettings, SETTINGS_ROW_ID)
        if row is None:
            row = MtUserSettings(id=SETTINGS_ROW_ID)
            self.session.add(row)
        row.payday = settings.payday
        row.monthly_budget = to_money(settings.monthly_budget)
        row.pie_chart_threshold_percent = settings.pie_chart_threshold_percent
        self.session.flush()
        self._touch(SETTINGS)


__all__ = [
    "CANDIDATES",
    "CATEGORIES",
    "EXPENSES",
    "LEDGER_LOCK",
    "MONTHLY_RECORDS",
    "SETTINGS",
    "ChangeFeed",
    "Persistence",
    "SqlPersistence",
    "default_feed",
    "to_money",
]
