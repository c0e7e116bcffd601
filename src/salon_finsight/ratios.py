# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Margins, occupancy, break-even and projection calculators for Salon FinSight.

This module complements the KPI aggregator (engine.py) by deriving the
figures used for charting and planning:

1. Margins
   -------
   Gross and net margin percentages relative to net revenue. Both are
   0.0 whenever net revenue is not strictly positive.

2. Occupancy
   ---------
   A completion-ratio proxy: completed appointments over all appointments
   of the window. The "hours" fields are appointment counts; no real
   capacity data is available to the engine.

3. Break-even
   ----------
   Daily fixed cost = fixed-category expenses / 30. The divisor is a fixed
   monthly normalization, independent of the window length. The break-even
   point is exposed as its own field for charting and is equal to the
   daily fixed cost.

4. Projection
   ----------
   Linear extrapolation of the window's average daily revenue to the next
   30 and 90 days. No seasonality, no regression.

Every function here is total: divisions are guarded and return 0.0.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Optional

from .models import Expense
from .periods import DEFAULT_WINDOW_DAYS, Window, window_days

# Expense categories treated as fixed costs (rent and salaries).
DEFAULT_FIXED_COST_CATEGORIES: tuple[str, ...] = (
    "rent",
    "alquiler",
    "salario",
    "salary",
)

# Fixed costs are normalized over a 30-day month, whatever the window length.
FIXED_COST_DIVISOR_DAYS = 30

PROJECTION_HORIZONS: tuple[int, int] = (30, 90)


@dataclass(frozen=True)
class Margins:
    gross_margin: float
    net_margin: float
    gross_margin_percent: float
    net_margin_percent: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Occupancy:
    rate: float
    hours_sold: int
    hours_available: int

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class BreakEven:
    daily_fixed_cost: float
    daily_revenue: float
    break_even_point: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Projection:
    next_30_days: float
    next_90_days: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def safe_percent(numerator: float, denominator: float) -> float:
    """Return numerator / denominator * 100, or 0.0 when the denominator is not > 0."""
    if denominator > 0:
        return numerator / denominator * 100
    return 0.0


def compute_margins(
    gross_margin: float, net_margin: float, net_revenue: float
) -> Margins:
    """
    Express gross and net margins as a percentage of net revenue.

    Args:
        gross_margin: Net revenue minus direct costs.
        net_margin: Gross margin minus operating expenses.
        net_revenue: Gross revenue minus discounts and taxes.

    Returns:
        Margins with both percentages set to 0.0 when net_revenue <= 0.
    """
    return Margins(
        gross_margin=gross_margin,
        net_margin=net_margin,
        gross_margin_percent=safe_percent(gross_margin, net_revenue),
        net_margin_percent=safe_percent(net_margin, net_revenue),
    )


def compute_occupancy(completed_count: int, total_count: int) -> Occupancy:
    return Occupancy(
        rate=safe_percent(completed_count, total_count),
        hours_sold=completed_count,
        hours_available=total_count,
    )


def is_fixed_cost(expense: Expense, categories: Iterable[str]) -> bool:
    """Case-insensitive exact match of the expense category against ``categories``."""
    if not expense.category:
        return False
    wanted = {c.strip().lower() for c in categories}
    return expense.category.strip().lower() in wanted


def fixed_costs(
    expenses: Iterable[Expense],
    categories: Iterable[str] = DEFAULT_FIXED_COST_CATEGORIES,
) -> float:
    """Sum of the expenses whose category is a fixed-cost category."""
    categories = tuple(categories)
    return sum((e.amount for e in expenses if is_fixed_cost(e, categories)), 0.0)


def compute_break_even(
    expenses: Iterable[Expense],
    gross_revenue: float,
    window: Optional[Window],
    categories: Iterable[str] = DEFAULT_FIXED_COST_CATEGORIES,
    divisor_days: int = FIXED_COST_DIVISOR_DAYS,
    default_days: int = DEFAULT_WINDOW_DAYS,
) -> BreakEven:
    """
    Compute the daily fixed cost, average daily revenue and break-even point.

    Args:
        expenses: Window-filtered expenses.
        gross_revenue: Gross revenue of the window.
        window: The window, used to derive the number of days for the
            daily revenue (30 when None).
        categories: Fixed-cost expense categories.
        divisor_days: Normalization divisor for fixed costs.
        default_days: Days assumed when there is no window.

    Returns:
        A BreakEven whose break_even_point equals daily_fixed_cost.
    """
    daily_fixed_cost = 0.0
    if divisor_days > 0:
        daily_fixed_cost = fixed_costs(expenses, categories) / divisor_days
    daily_revenue = gross_revenue / window_days(window, default_days)

    return BreakEven(
        daily_fixed_cost=daily_fixed_cost,
        daily_revenue=daily_revenue,
        break_even_point=daily_fixed_cost,
    )


def compute_projection(
    gross_revenue: float,
    window: Optional[Window],
    default_days: int = DEFAULT_WINDOW_DAYS,
) -> Projection:
    """Linear 30/90-day projection from the window's average daily revenue."""
    daily_revenue = gross_revenue / window_days(window, default_days)
    short, long = PROJECTION_HORIZONS
    return Projection(
        next_30_days=daily_revenue * short,
        next_90_days=daily_revenue * long,
    )
