# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core KPI aggregation engine for Salon FinSight.

This module turns a snapshot of appointments, payments, expenses and
commissions into the headline KPIs of a reporting window, and bundles
them with the derived figures computed in ``ratios.py``.

1. KPI aggregation
   ---------------
   ``compute_kpis()`` filters the snapshot to the window and computes:

   - gross / net revenue (via the revenue reconciler, reconciler.py),
   - direct costs: every commission of the window,
   - gross margin = net revenue - direct costs,
   - total expenses and net margin = gross margin - total expenses,
   - average ticket = gross revenue / completed appointments,
   - occupancy rate = completed / all appointments of the window,
   - daily cash: today's revenue (max of the two signals over today's
     appointments and payments), independent of the window,
   - pending settlement: window payments without a gateway settlement date.

2. Financial metrics bundle
   ------------------------
   ``compute_financial_metrics()`` returns a ``FinancialMetrics`` object
   grouping KPIs, margins, occupancy, break-even and projection for one
   window, the shape consumed by dashboards and exporters.

3. KPI metadata
   ------------
   ``KPI_METADATA`` provides a label and unit for each KPI key (MeasureMeta),
   used by the view helpers to build tables and CSV exports.

Notes
-----
All sums are plain float accumulations. Rounding to currency precision is
a presentation concern (views.py) and never happens here. Every figure of
an empty snapshot is 0.0.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from .models import Appointment, Payment, Snapshot
from .periods import DEFAULT_WINDOW_DAYS, Window, _today, filter_snapshot
from .ratios import (
    DEFAULT_FIXED_COST_CATEGORIES,
    FIXED_COST_DIVISOR_DAYS,
    BreakEven,
    Margins,
    Occupancy,
    Projection,
    compute_break_even,
    compute_margins,
    compute_occupancy,
    compute_projection,
    safe_percent,
)
from .reconciler import (
    RevenueResolution,
    completed_appointments,
    gross_revenue,
    resolve_revenue,
)

# ---------------------------------------------------------------------------
# Metadata for KPIs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MeasureMeta:
    """
    Metadata associated with a KPI or derived figure.

    Attributes
    ----------
    key :
        Unique identifier of the measure (e.g. 'gross_revenue').
    label :
        Human-readable label for display.
    unit :
        Unit hint ('amount', 'percent', 'count').
    notes :
        Optional notes shown alongside the value.
    """

    key: str
    label: str
    unit: str
    notes: str = ""


KPI_METADATA: dict[str, MeasureMeta] = {
    m.key: m
    for m in (
        MeasureMeta(
            "gross_revenue",
            "Gross revenue",
            "amount",
            "Larger of completed-appointment value and payments.",
        ),
        MeasureMeta(
            "net_revenue", "Net revenue", "amount", "Gross revenue - discounts - taxes."
        ),
        MeasureMeta("direct_costs", "Direct costs", "amount", "Commissions."),
        MeasureMeta("gross_margin", "Gross margin", "amount"),
        MeasureMeta("total_expenses", "Total expenses", "amount"),
        MeasureMeta("net_margin", "Net margin", "amount"),
        MeasureMeta("average_ticket", "Average ticket", "amount"),
        MeasureMeta(
            "occupancy_rate",
            "Occupancy rate",
            "percent",
            "Completed appointments / all appointments.",
        ),
        MeasureMeta(
            "daily_cash", "Daily cash", "amount", "Today, all locations in scope."
        ),
        MeasureMeta(
            "pending_settlement",
            "Pending settlement",
            "amount",
            "Payments not yet settled by the gateway.",
        ),
    )
}


@dataclass(frozen=True)
class KPIs:
    gross_revenue: float = 0.0
    net_revenue: float = 0.0
    direct_costs: float = 0.0
    gross_margin: float = 0.0
    total_expenses: float = 0.0
    net_margin: float = 0.0
    average_ticket: float = 0.0
    occupancy_rate: float = 0.0
    daily_cash: float = 0.0
    pending_settlement: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class FinancialMetrics:
    """All window-level figures for one scope."""

    kpis: KPIs
    margins: Margins
    occupancy: Occupancy
    break_even: BreakEven
    projection: Projection
    revenue: RevenueResolution

    def as_dict(self) -> dict[str, dict[str, float]]:
        return {
            "kpis": self.kpis.as_dict(),
            "margins": self.margins.as_dict(),
            "occupancy": self.occupancy.as_dict(),
            "break_even": self.break_even.as_dict(),
            "projection": self.projection.as_dict(),
        }


def compute_daily_cash(
    appointments: Iterable[Appointment],
    payments: Iterable[Payment],
    today: Optional[date] = None,
) -> float:
    """
    Today's revenue, using the same max-of-two-signals rule as gross revenue.

    Takes the unfiltered collections: the caller's window does not apply.
    """
    today_iso = (today or _today()).isoformat()
    todays_appointments = [a for a in appointments if a.date == today_iso]
    todays_payments = [p for p in payments if p.date == today_iso]
    return gross_revenue(todays_appointments, todays_payments)


def _aggregate(
    snapshot: Snapshot,
    windowed: Snapshot,
    today: Optional[date],
) -> tuple[KPIs, RevenueResolution, int, int]:
    """Return KPIs, revenue resolution, completed and total appointment counts."""
    revenue = resolve_revenue(windowed.appointments, windowed.payments)
    completed_count = len(completed_appointments(windowed.appointments))
    total_count = len(windowed.appointments)

    direct_costs = sum((c.amount for c in windowed.commissions), 0.0)
    gross_margin = revenue.net_revenue - direct_costs
    total_expenses = sum((e.amount for e in windowed.expenses), 0.0)
    net_margin = gross_margin - total_expenses

    average_ticket = 0.0
    if completed_count > 0:
        average_ticket = revenue.gross_revenue / completed_count

    pending_settlement = sum(
        (p.amount for p in windowed.payments if not p.is_settled), 0.0
    )

    kpis = KPIs(
        gross_revenue=revenue.gross_revenue,
        net_revenue=revenue.net_revenue,
        direct_costs=direct_costs,
        gross_margin=gross_margin,
        total_expenses=total_expenses,
        net_margin=net_margin,
        average_ticket=average_ticket,
        occupancy_rate=safe_percent(completed_count, total_count),
        daily_cash=compute_daily_cash(snapshot.appointments, snapshot.payments, today),
        pending_settlement=pending_settlement,
    )
    return kpis, revenue, completed_count, total_count


def compute_kpis(
    snapshot: Snapshot,
    window: Optional[Window] = None,
    today: Optional[date] = None,
) -> KPIs:
    """Compute the headline KPIs of a snapshot for an optional window.

    Args:
        snapshot: Unfiltered snapshot for one organization/location scope.
        window: Inclusive reporting window; None uses the whole snapshot.
        today: Date used for the daily cash figure (defaults to the system date).

    Returns:
        A KPIs instance. Every field is 0.0 for an empty snapshot.
    """
    kpis, _, _, _ = _aggregate(snapshot, filter_snapshot(snapshot, window), today)
    return kpis


def compute_financial_metrics(
    snapshot: Snapshot,
    window: Optional[Window] = None,
    today: Optional[date] = None,
    fixed_cost_categories: Iterable[str] = DEFAULT_FIXED_COST_CATEGORIES,
    fixed_cost_divisor_days: int = FIXED_COST_DIVISOR_DAYS,
    default_window_days: int = DEFAULT_WINDOW_DAYS,
) -> FinancialMetrics:
    """Compute KPIs, margins, occupancy, break-even and projection in one pass.

    The snapshot is filtered once; every derived figure reuses the same
    filtered collections and the same revenue resolution.
    """
    windowed = filter_snapshot(snapshot, window)
    kpis, revenue, completed_count, total_count = _aggregate(snapshot, windowed, today)

    return FinancialMetrics(
        kpis=kpis,
        margins=compute_margins(kpis.gross_margin, kpis.net_margin, kpis.net_revenue),
        occupancy=compute_occupancy(completed_count, total_count),
        break_even=compute_break_even(
            windowed.expenses,
            kpis.gross_revenue,
            window,
            categories=fixed_cost_categories,
            divisor_days=fixed_cost_divisor_days,
            default_days=default_window_days,
        ),
        projection=compute_projection(
            kpis.gross_revenue, window, default_days=default_window_days
        ),
        revenue=revenue,
    )
