"""Presentation-side aggregation over the active ledger.

Nothing here touches persistence; callers pass in the expenses and categories
they already loaded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from .models import CategoryView, ExpenseView

OTHERS_LABEL = "Others"
UNCATEGORIZED_LABEL = "Uncategorized"

_CENT = Decimal("0.01")


def total_spent(expenses: Iterable[ExpenseView]) -> Decimal:
    return sum((e.cost for e in expenses), Decimal("0"))


def remaining(budget: Decimal, spent: Decimal) -> Decimal:
    return budget - spent


def format_remaining(amount: Decimal | float | int) -> str:
    """Render the remaining budget for display.

    Below 10 (including negatives) the exact amount is shown with two decimals.
    Otherwise only the leading digit is shown and the rest is masked with
    dashes: one per remaining integer digit, at most four.
    """

    value = Decimal(str(amount))
    if value < 0 or value < 10:
        return f"${value.quantize(_CENT, rounding=ROUND_HALF_UP):.2f}"
    int_part = str(int(value))
    dashes = min(len(int_part) - 1, 4)
    return f"${int_part[0]}{'-' * dashes}"


def resolve_category_name(
    category_id: int | None, categories: Mapping[int, str] | Iterable[CategoryView]
) -> str:
    """Resolve a weak category reference, falling back to ``Uncategorized``."""

    lookup = categories if isinstance(categories, Mapping) else {c.id: c.name for c in categories}
    if category_id is None:
        return UNCATEGORIZED_LABEL
    return lookup.get(category_id, UNCATEGORIZED_LABEL)


@dataclass(frozen=True, slots=True)
class CategoryBreakdown:
    """Per-category sums ready for a pie chart.

    ``synthetic`` names the keys produced internally (the merged bucket and the
    unresolved-category bucket) as opposed to user category names. A user
    category literally named ``Uncategorized`` shares that key; one named
    ``Others`` is overwritten by the merged bucket when there is one.
    """

    slices: dict[str, Decimal]
    synthetic: frozenset[str] = field(default_factory=frozenset)

    def legend_labels(self) -> list[str]:
        return [name for name in self.slices if name not in self.synthetic]


def category_breakdown(
    expenses: Iterable[ExpenseView],
    categories: Iterable[CategoryView],
    threshold_percent: int | Decimal = 5,
) -> CategoryBreakdown:
    """Sum expenses per category and fold small slices into ``Others``.

    An entry survives when its share of the total is at least
    ``threshold_percent`` (inclusive). Entries below it are merged into a
    single ``Others`` bucket, created only when the merged amount is positive.
    With a zero total no shares exist and nothing is merged.
    """

    lookup = {c.id: c.name for c in categories}
    sums: dict[str, Decimal] = {}
    synthetic: set[str] = set()
    for e in expenses:
        name = resolve_category_name(e.category_id, lookup)
        if e.category_id is None or e.category_id not in lookup:
            synthetic.add(UNCATEGORIZED_LABEL)
        sums[name] = sums.get(name, Decimal("0")) + e.cost

    total = sum(sums.values(), Decimal("0"))
    if total <= 0:
        return CategoryBreakdown(slices=sums, synthetic=frozenset(synthetic))

    threshold = Decimal(str(threshold_percent))
    kept: dict[str, Decimal] = {}
    merged_total = Decimal("0")
    for name, amount in sums.items():
        if amount / total * 100 >= threshold:
            kept[name] = amount
        else:
            merged_total += amount

    if merged_total > 0:
        # Replaces a kept user category of the same name.
        kept[OTHERS_LABEL] = merged_total
        synthetic.add(OTHERS_LABEL)
    # An unresolved bucket that got merged away is no longer a key.
    return CategoryBreakdown(slices=kept, synthetic=frozenset(synthetic & set(kept)))


__all__ = [
    "OTHERS_LABEL",
    "UNCATEGORIZED_LABEL",
    "CategoryBreakdown",
    "category_breakdown",
    "format_remaining",
    "remaining",
    "resolve_category_name",
    "total_spent",
]
