from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# The settings table holds exactly one row with this primary key.
SETTINGS_ROW_ID = 0


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: mt_categories
# ---------------------------


class MtCategory(Base):
    __tablename__ = "mt_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Names are unique by convention only; duplicates are tolerated.
    name: Mapped[str] = mapped_column(String, nullable=False)


# ---------------------------
# Core: mt_expenses (the active ledger)
# ---------------------------


class MtExpense(Base):
    __tablename__ = "mt_expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    bank: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # Weak reference: no FK so deleting a category leaves the id dangling,
    # which resolves to "Uncategorized" at display time.
    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


# ---------------------------
# Pending: mt_candidates (scraped from notifications, unreviewed)
# ---------------------------


class MtCandidate(Base):
    __tablename__ = "mt_candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    bank: Mapped[str] = mapped_column(String, nullable=False)
    detected_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ---------------------------
# Archive: mt_monthly_records
# ---------------------------


class MtMonthlyRecord(Base):
    __tablename__ = "mt_monthly_records"

    # "MM-YYYY"; not chronologically sortable as a string.
    month_key: Mapped[str] = mapped_column(String(7), primary_key=True)
    archived_json: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'[]'"))
    # 0 doubles as the "not yet archived" sentinel.
    budget_at_archive: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, server_default=text("0")
    )


# ---------------------------
# Singleton: mt_user_settings
# ---------------------------


class MtUserSettings(Base):
    __tablename__ = "mt_user_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    payday: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("28"))
    monthly_budget: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, server_default=text("800")
    )
    pie_chart_threshold_percent: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("5")
    )

    __table_args__ = (
        CheckConstraint(f"id = {SETTINGS_ROW_ID}", name="ck_mt_settings_singleton"),
        CheckConstraint("payday >= 1 AND payday <= 31", name="ck_mt_settings_payday"),
    )


__all__ = [
    "SETTINGS_ROW_ID",
    "Base",
    "MtCandidate",
    "MtCategory",
    "MtExpense",
    "MtMonthlyRecord",
    "MtUserSettings",
]
