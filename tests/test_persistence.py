from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from db.client import session_scope

from money_tracker.api import open_store
from money_tracker.models import Candidate, ExpenseDraft, MonthlyRecordView, UserSettings
from money_tracker.persistence import (
    CANDIDATES,
    CATEGORIES,
    EXPENSES,
    SETTINGS,
    ChangeFeed,
    SqlPersistence,
    to_money,
)

from tests.helpers.db import seed_expenses


def _draft(item: str, cost: str, when: datetime, category_id: int | None = None) -> ExpenseDraft:
    return ExpenseDraft(item=item, cost=Decimal(cost), bank="DBS", occurred_at=when,
                        category_id=category_id)


def test_to_money_rounds_half_up_to_cents() -> None:
    assert to_money("1.005") == Decimal("1.01")
    assert to_money(2) == Decimal("2.00")


def test_expenses_round_trip_newest_first(database_url: str) -> None:
    with open_store() as store:
        store.insert_expense(_draft("older", "1.10", datetime(2025, 3, 1, 9, 0, 0)))
        store.insert_expense(_draft("newer", "2.20", datetime(2025, 3, 2, 9, 0, 0), 7))

    with open_store() as store:
        rows = store.list_expenses()

    assert [r.item for r in rows] == ["newer", "older"]
    assert rows[0].cost == Decimal("2.20")
    assert rows[0].category_id == 7
    assert rows[0].occurred_at == datetime(2025, 3, 2, 9, 0, 0)


def test_expense_update_and_delete_report_missing_rows(database_url: str) -> None:
    [eid] = seed_expenses(
        database_url=database_url,
        rows=[("Lunch", "8.00", "DBS", datetime(2025, 3, 3, 12, 0, 0), None)],
    )
    with open_store() as store:
        assert store.update_expense_category(eid, 3) is True
        assert store.update_expense_category(999, 3) is False
        assert store.get_expense(eid).category_id == 3
        assert store.delete_expense(eid) is True
        assert store.delete_expense(eid) is False


def test_clear_expenses_returns_count(database_url: str) -> None:
    when = datetime(2025, 3, 3, 12, 0, 0)
    with open_store() as store:
        assert store.insert_expenses([_draft("a", "1", when), _draft("b", "2", when)]) == 2
        assert store.clear_expenses() == 2
        assert store.list_expenses() == []


def test_candidates_crud(database_url: str) -> None:
    when = datetime(2025, 3, 3, 12, 0, 0)
    with open_store() as store:
        c = store.insert_candidate(Candidate("Grab", Decimal("9.5"), "DBS"), when)
        assert c.cost == Decimal("9.50")
        assert store.get_candidate(c.id) == c
        assert store.delete_candidate(c.id) is True
        assert store.get_candidate(c.id) is None
        store.insert_candidate(Candidate("Taxi", Decimal("20"), "UOB"), when)
        assert store.clear_candidates() == 1


def test_monthly_record_update_requires_existing_row(database_url: str) -> None:
    with open_store() as store:
        store.insert_monthly_record(MonthlyRecordView("03-2025", "[]", Decimal("0")))
        store.update_monthly_record(MonthlyRecordView("03-2025", "[]", Decimal("800")))
        assert store.get_monthly_record("03-2025").budget_at_archive == Decimal("800.00")
        with pytest.raises(LookupError):
            store.update_monthly_record(MonthlyRecordView("04-2025", "[]", Decimal("1")))


def test_settings_singleton_upsert(database_url: str) -> None:
    with open_store() as store:
        assert store.get_settings() is None
        store.save_settings(UserSettings(payday=15))
        store.save_settings(UserSettings(payday=20, monthly_budget=Decimal("1000")))

    with open_store() as store:
        s = store.get_settings()
    assert s == UserSettings(payday=20, monthly_budget=Decimal("1000.00"))


def test_change_feed_publishes_after_commit_only(database_url: str) -> None:
    feed = ChangeFeed()
    seen: list[frozenset[str]] = []
    feed.subscribe(seen.append)

    with open_store(feed=feed) as store:
        store.insert_category("Food")
        store.save_settings(UserSettings())
        assert seen == []
    assert seen == [frozenset({CATEGORIES, SETTINGS})]


def test_change_feed_discards_rolled_back_changes(database_url: str) -> None:
    feed = ChangeFeed()
    seen: list[frozenset[str]] = []
    feed.subscribe(seen.append)

    with pytest.raises(RuntimeError):
        with open_store(feed=feed) as store:
            store.insert_candidate(
                Candidate("x", Decimal("1"), "DBS"), datetime(2025, 3, 3, 12, 0, 0)
            )
            raise RuntimeError("boom")

    assert seen == []
    with open_store() as store:
        assert store.list_candidates() == []


def test_change_feed_unsubscribe_and_failing_listener(database_url: str) -> None:
    feed = ChangeFeed()
    seen: list[frozenset[str]] = []

    def _broken(_changed: frozenset[str]) -> None:
        raise ValueError("listener bug")

    feed.subscribe(_broken)
    unsubscribe = feed.subscribe(seen.append)

    with session_scope() as session:
        SqlPersistence(session, feed=feed).insert_expense(
            _draft("a", "1", datetime(2025, 3, 3, 12, 0, 0))
        )
    assert seen == [frozenset({EXPENSES})]

    unsubscribe()
    feed.publish([CANDIDATES])
    assert seen == [frozenset({EXPENSES})]
