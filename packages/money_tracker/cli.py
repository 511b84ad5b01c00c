"""CLI for the ``money_tracker`` package.

A Typer-based console interface over the public API. Environment variables
(notably ``DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in
``money_tracker.api`` and the modules it orchestrates; commands here only parse
input, open a unit of work and render results with Rich.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .logging_setup import configure_logging

app = typer.Typer(
    name="money-tracker",
    no_args_is_help=True,
    add_completion=False,
    help="Track spending scraped from payment notifications against a monthly budget.",
)
console = Console()

DATE_OPTION_FORMATS = ["%Y-%m-%d"]


# ---- Small module-level helpers ----------------------------------------------


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


@contextmanager
def _store(ctx: typer.Context) -> Iterator:
    """Open a unit of work against the configured database."""

    from sqlalchemy.exc import SQLAlchemyError

    from .api import open_store

    try:
        with open_store(database_url=(ctx.obj or {}).get("database_url")) as store:
            yield store
    except (ValueError, LookupError) as e:
        raise _fail(str(e)) from e
    except SQLAlchemyError as e:
        raise _fail(f"database error: {e}") from e


def _today(value: datetime | None) -> date:
    return value.date() if value is not None else date.today()


def _category_choice(name: str | None, new_name: str | None):
    from .review import CategoryChoice

    if name is None and new_name is None:
        return None
    return CategoryChoice(name=name, new_name=new_name)


# ---- Setup -------------------------------------------------------------------


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create the database tables if they do not exist."""

    from db.client import init_schema

    init_schema(database_url=(ctx.obj or {}).get("database_url"))
    console.print("[green]Database ready.[/green]")


@app.command("settings")
def settings_cmd(
    ctx: typer.Context,
    payday: Annotated[int | None, typer.Option(help="Day of month you get paid (1-31)")] = None,
    budget: Annotated[str | None, typer.Option(help="Monthly budget amount")] = None,
    threshold: Annotated[
        int | None, typer.Option(help="Pie chart slice threshold in percent")
    ] = None,
) -> None:
    """Show settings, or update them when any option is given."""

    from .settings import load_or_init_settings, update_settings

    with _store(ctx) as store:
        if payday is None and budget is None and threshold is None:
            current = load_or_init_settings(store)
        else:
            current = update_settings(
                store,
                payday=payday,
                monthly_budget=budget,
                pie_chart_threshold_percent=threshold,
            )
    console.print(f"Payday: {current.payday}")
    console.print(f"Monthly budget: {current.monthly_budget:.2f}")
    console.print(f"Pie chart threshold: {current.pie_chart_threshold_percent}%")


# ---- Ingestion ---------------------------------------------------------------


@app.command("ingest")
def ingest_cmd(
    ctx: typer.Context,
    app_id: Annotated[str, typer.Option("--app", help="Source app package id")],
    title: Annotated[str, typer.Option(help="Notification title")],
    body: Annotated[str, typer.Option(help="Notification text")],
) -> None:
    """Feed one notification through extraction into the pending list."""

    from .ingest.worker import handle_notification
    from .models import Notification

    with _store(ctx) as store:
        stored = handle_notification(store, Notification(app_id, title, body))
    if stored is None:
        console.print("Not a recognized payment notification; ignored.")
        return
    console.print(f"Pending #{stored.id}: {stored.item} {stored.cost:.2f} ({stored.bank})")


@app.command("ingest-file")
def ingest_file_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="JSON lines file of notifications")],
) -> None:
    """Queue every notification in a JSON lines file through the ingestion worker.

    Each line is an object with ``app`` (or ``source_app_id``), ``title``,
    ``body`` and an optional ``posted_at`` (ISO 8601). Lines that cannot be
    decoded or parsed are reported and counted as failed.
    """

    from .ingest.worker import IngestionWorker
    from .models import Notification

    if not path.exists():
        raise _fail(f"File not found: {path}")

    bad_lines = 0
    with IngestionWorker(database_url=(ctx.obj or {}).get("database_url")) as worker:
        # Binary read so one undecodable line is skipped like any other bad line.
        with path.open("rb") as f:
            for line_no, raw in enumerate(f, start=1):
                if not raw.strip():
                    continue
                try:
                    obj = json.loads(raw.decode("utf-8"))
                    posted = obj.get("posted_at")
                    notification = Notification(
                        source_app_id=str(obj.get("app") or obj.get("source_app_id") or ""),
                        title=str(obj.get("title") or ""),
                        body=str(obj.get("body") or ""),
                        posted_at=datetime.fromisoformat(posted) if posted else None,
                    )
                except (ValueError, AttributeError) as e:
                    bad_lines += 1
                    console.print(f"[yellow]Skipping line {line_no}:[/yellow] {e}")
                    continue
                worker.submit(notification)
    console.print(
        f"Stored {worker.stored}, ignored {worker.discarded}, "
        f"failed {worker.failed + bad_lines}, dropped {worker.dropped}."
    )


# ---- Review ------------------------------------------------------------------


@app.command("pending")
def pending_cmd(ctx: typer.Context) -> None:
    """List candidates waiting for review."""

    with _store(ctx) as store:
        rows = store.list_candidates()
    if not rows:
        console.print("No pending transactions.")
        return
    table = Table(title="Pending")
    for col in ("ID", "Item", "Cost", "Bank", "Detected"):
        table.add_column(col)
    for r in rows:
        table.add_row(
            str(r.id), r.item, f"{r.cost:.2f}", r.bank, r.detected_at.strftime("%Y-%m-%d %H:%M")
        )
    console.print(table)


@app.command("confirm")
def confirm_cmd(
    ctx: typer.Context,
    candidate_id: Annotated[int, typer.Argument(help="Pending candidate id")],
    category: Annotated[str | None, typer.Option(help="Existing category name")] = None,
    new_category: Annotated[str | None, typer.Option(help="Create and use this category")] = None,
    item: Annotated[str | None, typer.Option(help="Override the item text")] = None,
    cost: Annotated[str | None, typer.Option(help="Override the cost")] = None,
    bank: Annotated[str | None, typer.Option(help="Override the bank label")] = None,
) -> None:
    """Commit a pending candidate as an expense."""

    from .persistence import LEDGER_LOCK
    from .review import confirm_candidate

    with LEDGER_LOCK, _store(ctx) as store:
        expense = confirm_candidate(
            store,
            candidate_id,
            category=_category_choice(category, new_category),
            item=item,
            cost=cost,
            bank=bank,
        )
    console.print(f"Saved expense #{expense.id}: {expense.item} {expense.cost:.2f}")


@app.command("dismiss")
def dismiss_cmd(
    ctx: typer.Context,
    candidate_id: Annotated[int, typer.Argument(help="Pending candidate id")],
) -> None:
    """Drop a pending candidate without saving it."""

    from .review import dismiss_candidate

    with _store(ctx) as store:
        dismiss_candidate(store, candidate_id)
    console.print(f"Dismissed pending #{candidate_id}.")


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    item: Annotated[str, typer.Option(help="What you paid for")],
    cost: Annotated[str, typer.Option(help="Amount paid")],
    bank: Annotated[str, typer.Option(help="Bank or card label")] = "",
    category: Annotated[str | None, typer.Option(help="Existing category name")] = None,
    new_category: Annotated[str | None, typer.Option(help="Create and use this category")] = None,
) -> None:
    """Record an expense manually."""

    from .persistence import LEDGER_LOCK
    from .review import add_manual_expense

    with LEDGER_LOCK, _store(ctx) as store:
        expense = add_manual_expense(
            store,
            item=item,
            cost=cost,
            bank=bank,
            category=_category_choice(category, new_category),
        )
    console.print(f"Saved expense #{expense.id}: {expense.item} {expense.cost:.2f}")


@app.command("expenses")
def expenses_cmd(ctx: typer.Context) -> None:
    """List the active period's expenses, newest first."""

    from .ledger import resolve_category_name

    with _store(ctx) as store:
        rows = store.list_expenses()
        lookup = {c.id: c.name for c in store.list_categories()}
    if not rows:
        console.print("No expenses this period.")
        return
    table = Table(title="Expenses")
    for col in ("ID", "Date", "Item", "Cost", "Bank", "Category"):
        table.add_column(col)
    for r in rows:
        table.add_row(
            str(r.id),
            r.occurred_at.strftime("%Y-%m-%d"),
            r.item,
            f"{r.cost:.2f}",
            r.bank,
            resolve_category_name(r.category_id, lookup),
        )
    console.print(table)


@app.command("categorize")
def categorize_cmd(
    ctx: typer.Context,
    expense_id: Annotated[int, typer.Argument(help="Expense id")],
    category: Annotated[str | None, typer.Option(help="Existing category name")] = None,
    new_category: Annotated[str | None, typer.Option(help="Create and use this category")] = None,
) -> None:
    """Change an expense's category (no option clears it)."""

    from .ledger import resolve_category_name
    from .review import set_expense_category

    with _store(ctx) as store:
        updated = set_expense_category(store, expense_id, _category_choice(category, new_category))
        name = resolve_category_name(updated.category_id, store.list_categories())
    console.print(f"Expense #{expense_id} is now in {name}.")


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    expense_id: Annotated[int, typer.Argument(help="Expense id")],
) -> None:
    """Delete an expense from the active period."""

    from .review import delete_expense

    with _store(ctx) as store:
        delete_expense(store, expense_id)
    console.print(f"Deleted expense #{expense_id}.")


# ---- Categories --------------------------------------------------------------


@app.command("categories")
def categories_cmd(ctx: typer.Context) -> None:
    """List categories."""

    with _store(ctx) as store:
        rows = store.list_categories()
    if not rows:
        console.print("No categories yet.")
        return
    for c in rows:
        console.print(f"{c.id}\t{c.name}")


@app.command("add-category")
def add_category_cmd(
    ctx: typer.Context, name: Annotated[str, typer.Argument(help="Category name")]
) -> None:
    from .categories import create_category

    with _store(ctx) as store:
        row, created = create_category(store, name)
    verb = "Created" if created else "Already exists:"
    console.print(f"{verb} {row.name} (#{row.id})")


@app.command("rename-category")
def rename_category_cmd(
    ctx: typer.Context,
    category_id: Annotated[int, typer.Argument(help="Category id")],
    name: Annotated[str, typer.Argument(help="New name")],
) -> None:
    from .categories import rename_category

    with _store(ctx) as store:
        row = rename_category(store, category_id, name)
    console.print(f"Renamed #{row.id} to {row.name}.")


@app.command("delete-category")
def delete_category_cmd(
    ctx: typer.Context, category_id: Annotated[int, typer.Argument(help="Category id")]
) -> None:
    from .categories import delete_category

    with _store(ctx) as store:
        delete_category(store, category_id)
    console.print(f"Deleted category #{category_id}.")


# ---- Budget cycle ------------------------------------------------------------


@app.command("check")
def check_cmd(
    ctx: typer.Context,
    today: Annotated[
        datetime | None, typer.Option(formats=DATE_OPTION_FORMATS, help="Pretend today is this date")
    ] = None,
) -> None:
    """Run the daily rollover check (safe to repeat)."""

    from .api import run_daily_check
    from .budget_cycle import RolloverError

    try:
        result = run_daily_check(
            database_url=(ctx.obj or {}).get("database_url"), today=_today(today)
        )
    except RolloverError as e:
        raise _fail(f"{e} (will retry on the next check)") from e
    if result.rolled_over:
        console.print(
            f"[green]Archived {result.archived_count} expenses into {result.month_key}.[/green]"
        )
    else:
        console.print(f"No rollover ({result.outcome.value}).")


@app.command("summary")
def summary_cmd(
    ctx: typer.Context,
    today: Annotated[
        datetime | None, typer.Option(formats=DATE_OPTION_FORMATS, help="Pretend today is this date")
    ] = None,
) -> None:
    """Show spending, remaining budget and the category breakdown."""

    from .api import build_summary

    with _store(ctx) as store:
        summary = build_summary(store, _today(today))
    console.print(f"Spent: {summary.total_spent:.2f}")
    console.print(f"Left this month: {summary.remaining_display}")
    console.print(f"Days to payday: {summary.days_to_payday}")
    console.print(f"Pending review: {summary.pending_candidates}")
    if summary.breakdown.slices:
        table = Table(title="By category")
        table.add_column("Category")
        table.add_column("Amount", justify="right")
        for name, amount in summary.breakdown.slices.items():
            table.add_row(name, f"{amount:.2f}")
        console.print(table)


@app.command("history")
def history_cmd(ctx: typer.Context) -> None:
    """List monthly records, newest first."""

    from .api import list_month_records
    from .budget_cycle import is_archived, load_archived_expenses

    with _store(ctx) as store:
        records = list_month_records(store)
    if not records:
        console.print("No monthly records.")
        return
    table = Table(title="History")
    for col in ("Month", "Budget", "Expenses", "Spent"):
        table.add_column(col)
    for r in records:
        snapshots = load_archived_expenses(r)
        spent = sum((s.cost for s in snapshots), 0)
        table.add_row(
            r.month_key,
            f"{r.budget_at_archive:.2f}" if is_archived(r) else "-",
            str(len(snapshots)),
            f"{spent:.2f}",
        )
    console.print(table)


# ---- Import / export ---------------------------------------------------------


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Output file (.csv or .json)")],
) -> None:
    """Export the active period's expenses."""

    from .transfer import export_expenses_to_file

    with _store(ctx) as store:
        n = export_expenses_to_file(store, path)
    console.print(f"Exported {n} expenses to {path}")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Input file (.csv or .json)")],
    replace: Annotated[
        bool, typer.Option(help="Clear the active period before importing")
    ] = False,
) -> None:
    """Import expenses into the active period."""

    import csv

    from .persistence import LEDGER_LOCK
    from .transfer import import_expenses_from_file

    if not path.exists():
        raise _fail(f"File not found: {path}")
    try:
        with LEDGER_LOCK, _store(ctx) as store:
            report = import_expenses_from_file(store, path, replace=replace)
    except (csv.Error, json.JSONDecodeError) as e:
        raise _fail(f"could not parse {path}: {e}") from e
    console.print(f"Imported {report.imported} expenses ({report.skipped} skipped).")


@app.command("export-month")
def export_month_cmd(
    ctx: typer.Context,
    month_key: Annotated[str, typer.Argument(help="Month key, MM-YYYY")],
    path: Annotated[Path, typer.Argument(help="Output file (.csv or .json)")],
) -> None:
    """Export an archived month's expenses."""

    from .transfer import export_archived_month

    with _store(ctx) as store:
        n = export_archived_month(store, month_key, path)
    console.print(f"Exported {n} archived expenses to {path}")


# ---- Root --------------------------------------------------------------------


@app.callback()
def _root(
    ctx: typer.Context,
    database_url: Annotated[
        str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option(help="Log level (falls back to MONEY_TRACKER_LOG_LEVEL).")
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)
    ctx.obj = {"database_url": database_url}


def main() -> None:  # pragma: no cover - console script entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
