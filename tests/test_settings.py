from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from money_tracker.api import open_store
from money_tracker.models import UserSettings
from money_tracker.settings import default_settings, load_or_init_settings, update_settings


def test_defaults() -> None:
    s = default_settings()
    assert (s.payday, s.monthly_budget, s.pie_chart_threshold_percent) == (28, Decimal("800.00"), 5)


def test_load_initializes_defaults_once(database_url: str) -> None:
    with open_store() as store:
        assert store.get_settings() is None
        first = load_or_init_settings(store)

    with open_store() as store:
        assert store.get_settings() == first
        assert load_or_init_settings(store) == first


def test_partial_update_keeps_other_fields(database_url: str) -> None:
    with open_store() as store:
        update_settings(store, payday=25)
        s = update_settings(store, monthly_budget="950.5")

    assert s == UserSettings(payday=25, monthly_budget=Decimal("950.50"))


@pytest.mark.parametrize(
    "changes",
    [
        {"payday": 0},
        {"payday": 32},
        {"monthly_budget": "-1"},
        {"pie_chart_threshold_percent": 101},
    ],
)
def test_invalid_update_raises_and_keeps_stored_value(database_url: str, changes: dict) -> None:
    with open_store() as store:
        with pytest.raises(ValueError, match="Invalid settings"):
            update_settings(store, **changes)
        assert store.get_settings() == default_settings()


def test_settings_model_is_frozen() -> None:
    s = UserSettings()
    with pytest.raises(ValidationError):
        s.payday = 3  # type: ignore[misc]
