"""Data models and type aliases for ``money_tracker``.

Two families live here:

- Frozen dataclasses that carry rows out of the persistence layer
  (``ExpenseView``, ``CandidateView``, ...). Callers never hold live ORM
  objects, so views stay valid after the session that produced them closes.
- Pydantic models for payloads that cross a serialization boundary: the
  archived expense snapshot stored on a monthly record, and the validated
  user settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

# ---------------------------------------------------------------------------
# Notification events and extracted candidates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Notification:
    """A raw notification as delivered by the OS observation layer."""

    source_app_id: str
    title: str
    body: str
    posted_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Candidate:
    """A transaction inferred from notification text, not yet stored.

    ``item`` is the notification title verbatim. ``masked_suffix`` is the
    rightmost standalone 4-digit run in the body, or ``""`` when absent.
    """

    item: str
    cost: Decimal
    bank: str
    masked_suffix: str = ""


# ---------------------------------------------------------------------------
# Row views returned by persistence
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExpenseView:
    id: int
    item: str
    cost: Decimal
    bank: str
    occurred_at: datetime
    category_id: int | None = None


@dataclass(frozen=True, slots=True)
class CandidateView:
    id: int
    item: str
    cost: Decimal
    bank: str
    detected_at: datetime


@dataclass(frozen=True, slots=True)
class CategoryView:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class MonthlyRecordView:
    """An archive record. ``budget_at_archive == 0`` means not yet archived."""

    month_key: str
    archived_json: str
    budget_at_archive: Decimal


@dataclass(frozen=True, slots=True)
class ExpenseDraft:
    """Fields for a new active-ledger expense (id assigned on insert)."""

    item: str
    cost: Decimal
    bank: str
    occurred_at: datetime
    category_id: int | None = None


@dataclass(frozen=True, slots=True)
class ImportReport:
    imported: int
    skipped: int
    skipped_rows: tuple[int, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Serialized payloads
# ---------------------------------------------------------------------------


class ExpenseSnapshot(BaseModel):
    """One archived expense as stored in ``MonthlyRecord.archived_json``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    item: str
    cost: Decimal
    bank: str
    occurred_at: datetime
    category_id: int | None = None

    @classmethod
    def from_view(cls, view: ExpenseView) -> ExpenseSnapshot:
        return cls(
            id=view.id,
            item=view.item,
            cost=view.cost,
            bank=view.bank,
            occurred_at=view.occurred_at,
            category_id=view.category_id,
        )


ExpenseSnapshotList = TypeAdapter(list[ExpenseSnapshot])


class UserSettings(BaseModel):
    """The singleton settings value.

    ``payday`` is the day of month the user is paid; months shorter than
    ``payday`` use their last day instead.
    """

    model_config = ConfigDict(frozen=True, validate_assignment=True)

    payday: int = Field(default=28, ge=1, le=31)
    monthly_budget: Decimal = Field(default=Decimal("800.00"), ge=0)
    pie_chart_threshold_percent: int = Field(default=5, ge=0, le=100)

    @field_validator("monthly_budget")
    @classmethod
    def _two_places(cls, v: Decimal) -> Decimal:
        return v.quantize(Decimal("0.01"))


__all__ = [
    "Candidate",
    "CandidateView",
    "CategoryView",
    "ExpenseDraft",
    "ExpenseSnapshot",
    "ExpenseSnapshotList",
    "ExpenseView",
    "ImportReport",
    "MonthlyRecordView",
    "Notification",
    "UserSettings",
]
