"""Public interface for the ``money_tracker`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    Summary,
    build_summary,
    daily_check,
    list_month_records,
    open_store,
    run_daily_check,
)
from .budget_cycle import (
    BudgetCycleEngine,
    RolloverError,
    RolloverOutcome,
    RolloverResult,
    ensure_month_record,
    load_archived_expenses,
)
from .extraction import extract, extract_notification
from .ingest.worker import IngestionWorker, NotificationSource, handle_notification
from .ledger import category_breakdown, format_remaining, remaining, total_spent
from .models import (
    Candidate,
    CandidateView,
    CategoryView,
    ExpenseSnapshot,
    ExpenseView,
    ImportReport,
    MonthlyRecordView,
    Notification,
    UserSettings,
)
from .payday import days_to_next_payday, is_reset_day, month_key, next_payday
from .persistence import ChangeFeed, Persistence, SqlPersistence

__all__ = [
    # API
    "build_summary",
    "daily_check",
    "list_month_records",
    "open_store",
    "run_daily_check",
    "Summary",
    # Budget cycle
    "BudgetCycleEngine",
    "RolloverError",
    "RolloverOutcome",
    "RolloverResult",
    "ensure_month_record",
    "load_archived_expenses",
    # Ingestion
    "extract",
    "extract_notification",
    "handle_notification",
    "IngestionWorker",
    "NotificationSource",
    # Ledger / calendar
    "category_breakdown",
    "days_to_next_payday",
    "format_remaining",
    "is_reset_day",
    "month_key",
    "next_payday",
    "remaining",
    "total_spent",
    # Persistence
    "ChangeFeed",
    "Persistence",
    "SqlPersistence",
    # Models / types
    "Candidate",
    "CandidateView",
    "CategoryView",
    "ExpenseSnapshot",
    "ExpenseView",
    "ImportReport",
    "MonthlyRecordView",
    "Notification",
    "UserSettings",
]
