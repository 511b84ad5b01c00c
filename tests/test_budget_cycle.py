from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from money_tracker.api import daily_check, open_store, run_daily_check
from money_tracker.budget_cycle import (
    BudgetCycleEngine,
    RolloverError,
    RolloverOutcome,
    ensure_month_record,
    is_archived,
    load_archived_expenses,
)
from money_tracker.models import MonthlyRecordView, UserSettings
from money_tracker.payday import month_key
from money_tracker.settings import update_settings

from tests.helpers.db import seed_expenses


def _seed_march(database_url: str) -> list[int]:
    return seed_expenses(
        database_url=database_url,
        rows=[
            ("Coffee", "4.50", "DBS", datetime(2025, 3, 3, 8, 0, 0), None),
            ("Groceries", "62.10", "UOB", datetime(2025, 3, 10, 18, 30, 0), 2),
            ("Taxi", "18.00", "GP 1234", datetime(2025, 3, 20, 23, 5, 0), None),
        ],
    )


def test_ensure_month_record_is_idempotent(database_url: str) -> None:
    with open_store() as store:
        first = ensure_month_record(store, date(2025, 3, 5))
        second = ensure_month_record(store, date(2025, 3, 25))

    assert first == second
    assert first.month_key == "03-2025"
    assert not is_archived(first)
    assert load_archived_expenses(first) == []


def test_not_due_outside_reset_day(database_url: str) -> None:
    _seed_march(database_url)
    result = run_daily_check(today=date(2025, 3, 28))

    assert result.outcome is RolloverOutcome.NOT_DUE
    with open_store() as store:
        assert len(store.list_expenses()) == 3


def test_rollover_archives_and_clears_exactly_once(database_url: str) -> None:
    ids = _seed_march(database_url)
    run_daily_check(today=date(2025, 3, 5))

    first = run_daily_check(today=date(2025, 3, 29))
    second = run_daily_check(today=date(2025, 3, 29))

    assert first.rolled_over
    assert first.archived_count == 3
    assert second.outcome is RolloverOutcome.ALREADY_ARCHIVED

    with open_store() as store:
        assert store.list_expenses() == []
        record = store.get_monthly_record("03-2025")

    assert record is not None
    assert record.budget_at_archive == Decimal("800.00")
    snapshots = load_archived_expenses(record)
    assert sorted(s.id for s in snapshots) == sorted(ids)
    taxi = next(s for s in snapshots if s.item == "Taxi")
    assert taxi.cost == Decimal("18.00")
    assert taxi.bank == "GP 1234"
    assert taxi.occurred_at == datetime(2025, 3, 20, 23, 5, 0)


def test_day_after_reset_day_does_not_trigger(database_url: str) -> None:
    _seed_march(database_url)
    result = run_daily_check(today=date(2025, 3, 30))

    assert result.outcome is RolloverOutcome.NOT_DUE
    with open_store() as store:
        assert len(store.list_expenses()) == 3


def test_missing_record_skips_rollover(database_url: str) -> None:
    _seed_march(database_url)
    with open_store() as store:
        result = BudgetCycleEngine().check(store, UserSettings(), date(2025, 3, 29))
        assert result.outcome is RolloverOutcome.NO_RECORD
        assert len(store.list_expenses()) == 3


def test_budget_is_taken_from_current_settings(database_url: str) -> None:
    _seed_march(database_url)
    with open_store() as store:
        update_settings(store, payday=15, monthly_budget="1200")
    run_daily_check(today=date(2025, 3, 16))

    with open_store() as store:
        assert store.get_monthly_record("03-2025").budget_at_archive == Decimal("1200.00")


def test_zero_budget_leaves_record_unarchived(database_url: str) -> None:
    _seed_march(database_url)
    with open_store() as store:
        update_settings(store, monthly_budget=0)

    first = run_daily_check(today=date(2025, 3, 29))
    second = run_daily_check(today=date(2025, 3, 29))

    assert first.archived_count == 3
    # The zero sentinel still reads as unarchived, so the now-empty ledger is
    # archived again over the first snapshot.
    assert second.rolled_over
    assert second.archived_count == 0
    with open_store() as store:
        record = store.get_monthly_record("03-2025")
    assert not is_archived(record)
    assert load_archived_expenses(record) == []


class _FailingClear:
    """Wraps a store and fails the ledger clear after the archive write."""

    def __init__(self, store) -> None:
        self._store = store

    def __getattr__(self, name: str):
        return getattr(self._store, name)

    def clear_expenses(self) -> int:
        raise OperationalError("DELETE FROM mt_expenses", {}, Exception("disk I/O error"))


def test_failed_rollover_rolls_back_archive_write(database_url: str) -> None:
    _seed_march(database_url)
    with open_store() as store:
        ensure_month_record(store, date(2025, 3, 29))

    with pytest.raises(RolloverError):
        with open_store() as store:
            daily_check(_FailingClear(store), date(2025, 3, 29))

    with open_store() as store:
        record = store.get_monthly_record("03-2025")
        assert len(store.list_expenses()) == 3
    assert record == MonthlyRecordView("03-2025", "[]", Decimal("0.00"))

    # The next check retries and succeeds.
    assert run_daily_check(today=date(2025, 3, 29)).archived_count == 3


def test_rollover_ignores_candidates(database_url: str) -> None:
    from money_tracker.ingest.worker import handle_notification
    from money_tracker.models import Notification

    with open_store() as store:
        handle_notification(
            store, Notification("com.dbs.sg.digibank", "Shop", "SGD 5.00 card 1111")
        )
    run_daily_check(today=date(2025, 3, 29))

    with open_store() as store:
        assert len(store.list_candidates()) == 1


def test_payday_30_rolls_over_on_the_31st_only(database_url: str) -> None:
    _seed_march(database_url)
    with open_store() as store:
        update_settings(store, payday=30)

    assert run_daily_check(today=date(2025, 3, 1)).outcome is RolloverOutcome.NOT_DUE
    result = run_daily_check(today=date(2025, 3, 31))

    assert result.rolled_over
    assert result.archived_count == 3
    with open_store() as store:
        assert store.list_expenses() == []
        assert len(load_archived_expenses(store.get_monthly_record("03-2025"))) == 3


def test_each_month_rolls_over_at_most_once(database_url: str) -> None:
    with open_store() as store:
        update_settings(store, payday=30)

    rollovers: dict[str, int] = {}
    day = date(2025, 1, 1)
    while day.year == 2025:
        if run_daily_check(today=day).rolled_over:
            rollovers[month_key(day)] = rollovers.get(month_key(day), 0) + 1
        day += timedelta(days=1)

    assert set(rollovers.values()) == {1}
    assert sorted(rollovers) == sorted(
        ["01-2025", "03-2025", "05-2025", "07-2025", "08-2025", "10-2025", "12-2025"]
    )
