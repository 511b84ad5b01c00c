"""db: shared database library (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``db.models.tracker`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.tracker import (
    SETTINGS_ROW_ID,
    Base,
    MtCandidate,
    MtCategory,
    MtExpense,
    MtMonthlyRecord,
    MtUserSettings,
)

metadata = Base.metadata

__all__ = [
    "SETTINGS_ROW_ID",
    "Base",
    "metadata",
    "MtCandidate",
    "MtCategory",
    "MtExpense",
    "MtMonthlyRecord",
    "MtUserSettings",
]
