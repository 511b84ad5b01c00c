"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the expense-tracker models used by ``money_tracker``.
"""

from .tracker import (
    Base,
    MtCandidate,
    MtCategory,
    MtExpense,
    MtMonthlyRecord,
    MtUserSettings,
)

__all__ = [
    "Base",
    "MtCandidate",
    "MtCategory",
    "MtExpense",
    "MtMonthlyRecord",
    "MtUserSettings",
]
