from __future__ import annotations

from datetime import datetime

import pytest

from money_tracker.api import open_store
from money_tracker.categories import (
    create_category,
    delete_category,
    find_category_by_name,
    normalize_name,
    rename_category,
    validate_name,
)
from money_tracker.ledger import resolve_category_name

from tests.helpers.db import seed_expenses


def test_normalize_and_validate_names() -> None:
    assert normalize_name("  Food   &  Drinks ") == "Food & Drinks"
    assert validate_name("Bills/Utilities").ok
    assert validate_name("Kid's Stuff").ok

    empty = validate_name("   ")
    assert not empty.ok and empty.reason == "Name cannot be empty"
    assert not validate_name("x" * 65).ok
    assert not validate_name("Food; DROP TABLE").ok


def test_create_is_idempotent_by_name(database_url: str) -> None:
    with open_store() as store:
        food, created = create_category(store, " Food ")
        again, created_again = create_category(store, "food")

    assert created and not created_again
    assert again == food
    assert food.name == "Food"


def test_invalid_name_raises_value_error(database_url: str) -> None:
    with open_store() as store:
        with pytest.raises(ValueError, match="Invalid category name"):
            create_category(store, "")


def test_rename_and_lookup(database_url: str) -> None:
    with open_store() as store:
        c, _ = create_category(store, "Trnsport")
        renamed = rename_category(store, c.id, "Transport")
        assert renamed.name == "Transport"
        assert find_category_by_name(store, "TRANSPORT") == renamed
        assert find_category_by_name(store, "Trnsport") is None
        with pytest.raises(LookupError):
            rename_category(store, 999, "Whatever")


def test_deleted_category_leaves_expenses_uncategorized(database_url: str) -> None:
    with open_store() as store:
        c, _ = create_category(store, "Fun")
    [eid] = seed_expenses(
        database_url=database_url,
        rows=[("Movie", "14.00", "DBS", datetime(2025, 3, 1, 20, 0, 0), c.id)],
    )

    with open_store() as store:
        delete_category(store, c.id)
        expense = store.get_expense(eid)
        assert expense.category_id == c.id
        assert resolve_category_name(expense.category_id, store.list_categories()) == "Uncategorized"
        with pytest.raises(LookupError):
            delete_category(store, c.id)
