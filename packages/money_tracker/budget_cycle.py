"""Monthly budget cycle: archive the active ledger on the day after payday.

The only persisted state is the monthly record itself. A record whose
``budget_at_archive`` is ``0`` has not been archived yet; rolling over writes
the snapshot and the budget in one go, after which repeated checks on the same
day find a non-zero budget and do nothing.

Known limitation: a user budget of exactly ``0`` leaves the sentinel at ``0``
after rollover, so later checks on the same reset day roll over again (the
ledger is empty by then, so the archived snapshot is overwritten with an empty
list). This is logged, not corrected.

A month whose payday is clamped to its last day (every month for payday 31,
shorter months for 28 to 30) has no reset day and so is never archived on
its own; its expenses carry into the next month's rollover.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from .logging_setup import get_logger
from .models import ExpenseSnapshot, ExpenseSnapshotList, MonthlyRecordView, UserSettings
from .payday import is_reset_day, month_key
from .persistence import Persistence

_logger = get_logger("money_tracker.budget_cycle")

EMPTY_ARCHIVE_JSON = "[]"


class RolloverError(RuntimeError):
    """Rollover failed and was rolled back; safe to retry on the next check."""


class RolloverOutcome(enum.Enum):
    NOT_DUE = "not_due"
    NO_RECORD = "no_record"
    ALREADY_ARCHIVED = "already_archived"
    ROLLED_OVER = "rolled_over"


@dataclass(frozen=True, slots=True)
class RolloverResult:
    outcome: RolloverOutcome
    month_key: str
    archived_count: int = 0

    @property
    def rolled_over(self) -> bool:
        return self.outcome is RolloverOutcome.ROLLED_OVER


def is_archived(record: MonthlyRecordView) -> bool:
    return record.budget_at_archive != 0


def ensure_month_record(store: Persistence, today: date) -> MonthlyRecordView:
    """Create the (empty, unarchived) record for ``today``'s month if missing."""

    key = month_key(today)
    existing = store.get_monthly_record(key)
    if existing is not None:
        return existing
    record = MonthlyRecordView(
        month_key=key, archived_json=EMPTY_ARCHIVE_JSON, budget_at_archive=Decimal("0")
    )
    store.insert_monthly_record(record)
    _logger.info("opened monthly record %s", key)
    return record


class BudgetCycleEngine:
    """Decides whether today is the reset day and, if so, performs the rollover.

    The engine itself holds no state; call :meth:`check` as often as you like.
    Callers run it inside one unit of work (a single session) so the archive
    write and the ledger clear commit or roll back together.
    """

    def check(self, store: Persistence, settings: UserSettings, today: date) -> RolloverResult:
        key = month_key(today)
        if not is_reset_day(settings.payday, today):
            return RolloverResult(RolloverOutcome.NOT_DUE, key)

        record = store.get_monthly_record(key)
        if record is None:
            _logger.info("reset day %s but no monthly record %s; skipping", today, key)
            return RolloverResult(RolloverOutcome.NO_RECORD, key)
        if is_archived(record):
            return RolloverResult(RolloverOutcome.ALREADY_ARCHIVED, key)

        try:
            return self._rollover(store, settings, record)
        except SQLAlchemyError as e:
            raise RolloverError(f"rollover for {key} failed: {e}") from e

    def _rollover(
        self, store: Persistence, settings: UserSettings, record: MonthlyRecordView
    ) -> RolloverResult:
        expenses = store.list_expenses()
        snapshots = [ExpenseSnapshot.from_view(e) for e in expenses]
        payload = ExpenseSnapshotList.dump_json(snapshots).decode("utf-8")

        if settings.monthly_budget == 0:
            _logger.warning(
                "monthly budget is 0; record %s will still read as unarchived", record.month_key
            )

        store.update_monthly_record(
            MonthlyRecordView(
                month_key=record.month_key,
                archived_json=payload,
                budget_at_archive=settings.monthly_budget,
            )
        )
        store.clear_expenses()
        _logger.info(
            "rolled over %s: archived %d expenses, budget %s",
            record.month_key,
            len(snapshots),
            settings.monthly_budget,
        )
        return RolloverResult(RolloverOutcome.ROLLED_OVER, record.month_key, len(snapshots))


def load_archived_expenses(record: MonthlyRecordView) -> list[ExpenseSnapshot]:
    return ExpenseSnapshotList.validate_json(record.archived_json or EMPTY_ARCHIVE_JSON)


__all__ = [
    "BudgetCycleEngine",
    "RolloverError",
    "RolloverOutcome",
    "RolloverResult",
    "ensure_month_record",
    "is_archived",
    "load_archived_expenses",
]
