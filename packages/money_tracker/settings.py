"""The user-settings singleton: load, initialize defaults, save."""

from __future__ import annotations

from decimal import Decimal

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import UserSettings
from .persistence import Persistence

_logger = get_logger("money_tracker.settings")


def default_settings() -> UserSettings:
    return UserSettings()


def load_or_init_settings(store: Persistence) -> UserSettings:
    """Return the stored settings, creating the defaults row when absent."""

    current = store.get_settings()
    if current is not None:
        return current
    defaults = default_settings()
    store.save_settings(defaults)
    _logger.info(
        "initialized default settings (payday=%d, budget=%s)",
        defaults.payday,
        defaults.monthly_budget,
    )
    return defaults


def update_settings(
    store: Persistence,
    *,
    payday: int | None = None,
    monthly_budget: Decimal | str | float | None = None,
    pie_chart_threshold_percent: int | None = None,
) -> UserSettings:
    """Apply a partial update and persist it.

    Raises ``ValueError`` with a readable reason when the result is invalid.
    """

    current = load_or_init_settings(store)
    changes: dict[str, object] = {}
    if payday is not None:
        changes["payday"] = payday
    if monthly_budget is not None:
        changes["monthly_budget"] = monthly_budget
    if pie_chart_threshold_percent is not None:
        changes["pie_chart_threshold_percent"] = pie_chart_threshold_percent
    try:
        updated = UserSettings.model_validate({**current.model_dump(), **changes})
    except ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValueError(f"Invalid settings: {reasons}") from e
    store.save_settings(updated)
    return updated


__all__ = ["default_settings", "load_or_init_settings", "update_settings"]
