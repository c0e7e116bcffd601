# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Financial health alerts.

The alert engine evaluates a fixed list of independent threshold rules over
the *full* snapshot (not the caller's reporting window) and returns the
alerts that fired, in rule order:

1. no-show:             cancelled / all appointments > 15 %        (warning)
2. revenue-drop:        last 7 days vs. average of the 3 previous
                        7-day buckets, drop > 20 %                 (critical)
3. low-margin:          (payments - expenses) / payments < 10 %,
                        only when there is revenue                 (warning)
4. gateway-differences: at least one reconciliation difference     (critical)

Rules never depend on each other, several can fire together, and the
result is never re-sorted by severity.
"""

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Literal, Optional

from .models import Payment, Snapshot
from .periods import _today
from .ratios import safe_percent
from .reconciliation import DEFAULT_TOLERANCE, detect_differences

AlertSeverity = Literal["info", "warning", "critical"]

REVENUE_WEEK_DAYS = 7
REVENUE_BASELINE_WEEKS = 3


@dataclass(frozen=True)
class Alert:
    id: str
    type: str
    severity: AlertSeverity
    title: str
    message: str
    suggested_action: Optional[str] = None

    def as_dict(self) -> dict[str, Optional[str]]:
        return asdict(self)


@dataclass(frozen=True)
class AlertThresholds:
    """Percent thresholds of the alert rules (strict comparisons)."""

    no_show_pct: float = 15.0
    revenue_drop_pct: float = 20.0
    low_margin_pct: float = 10.0


def no_show_rate(snapshot: Snapshot) -> float:
    cancelled = sum(1 for a in snapshot.appointments if a.is_cancelled)
    return safe_percent(cancelled, len(snapshot.appointments))


def weekly_revenue(payments: tuple[Payment, ...], today: date) -> tuple[float, float]:
    """
    Return (last week revenue, average revenue of the three previous weeks).

    Last week covers every payment dated on or after ``today - 7`` (future
    dated payments included); the baseline covers
    ``[today - 28, today - 7)`` and is divided by 3.
    """
    last_week_start = (today - timedelta(days=REVENUE_WEEK_DAYS)).isoformat()
    baseline_start = (
        today - timedelta(days=REVENUE_WEEK_DAYS * (REVENUE_BASELINE_WEEKS + 1))
    ).isoformat()

    last_week = 0.0
    baseline = 0.0
    for p in payments:
        if p.date is None:
            continue
        if p.date >= last_week_start:
            last_week += p.amount
        elif baseline_start <= p.date < last_week_start:
            baseline += p.amount

    return last_week, baseline / REVENUE_BASELINE_WEEKS


def revenue_drop_percent(last_week: float, average_previous: float) -> float:
    """Relative drop of last week's revenue versus the baseline (0.0 without one)."""
    if average_previous > 0:
        return (average_previous - last_week) / average_previous * 100
    return 0.0


def margin_percent(snapshot: Snapshot) -> tuple[float, float]:
    """Return (all-time payment revenue, margin % after all expenses)."""
    total_revenue = sum((p.amount for p in snapshot.payments), 0.0)
    total_expenses = sum((e.amount for e in snapshot.expenses), 0.0)
    return total_revenue, safe_percent(total_revenue - total_expenses, total_revenue)


def _no_show_alert(snapshot: Snapshot, thresholds: AlertThresholds) -> Optional[Alert]:
    rate = no_show_rate(snapshot)
    if rate <= thresholds.no_show_pct:
        return None
    return Alert(
        id="no-show-high",
        type="no-show",
        severity="warning",
        title="High no-show rate",
        message=f"The cancellation rate is {rate:.1f}%",
        suggested_action="Consider automatic confirmations or a booking deposit",
    )


def _revenue_drop_alert(
    snapshot: Snapshot, thresholds: AlertThresholds, today: date
) -> Optional[Alert]:
    last_week, average_previous = weekly_revenue(snapshot.payments, today)
    drop = revenue_drop_percent(last_week, average_previous)
    if average_previous <= 0 or drop <= thresholds.revenue_drop_pct:
        return None
    return Alert(
        id="revenue-drop",
        type="revenue",
        severity="critical",
        title="Significant revenue drop",
        message=(
            f"Revenue dropped {drop:.1f}% versus the average of the last "
            f"{REVENUE_BASELINE_WEEKS} weeks"
        ),
        suggested_action="Review the schedule, prices and promotions",
    )


def _low_margin_alert(
    snapshot: Snapshot, thresholds: AlertThresholds
) -> Optional[Alert]:
    total_revenue, margin = margin_percent(snapshot)
    if total_revenue <= 0 or margin >= thresholds.low_margin_pct:
        return None
    return Alert(
        id="low-margin",
        type="margin",
        severity="warning",
        title="Low margin",
        message=f"Net margin is {margin:.1f}%",
        suggested_action="Review costs and consider adjusting prices",
    )


def _gateway_alert(snapshot: Snapshot, tolerance: float) -> Optional[Alert]:
    differences = detect_differences(snapshot.reconciliations, tolerance)
    if not differences:
        return None
    return Alert(
        id="gateway-differences",
        type="gateway",
        severity="critical",
        title="Payment gateway reconciliation differences",
        message=(
            f"Found {len(differences)} difference(s) between sold and settled amounts"
        ),
        suggested_action="Review the payment gateway reconciliations",
    )


def evaluate_alerts(
    snapshot: Snapshot,
    thresholds: Optional[AlertThresholds] = None,
    today: Optional[date] = None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[Alert]:
    """
    Evaluate every alert rule over an unfiltered snapshot.

    Args:
        snapshot: Full recent snapshot for one scope (no window applied).
        thresholds: Rule thresholds; defaults to AlertThresholds().
        today: Reference date for the revenue-drop rule (system date by default).
        tolerance: Gateway difference tolerance, the same value the
            reconciliation differ is given.

    Returns:
        The alerts that fired, in rule order.
    """
    thresholds = thresholds or AlertThresholds()
    today = today or _today()

    candidates = (
        _no_show_alert(snapshot, thresholds),
        _revenue_drop_alert(snapshot, thresholds, today),
        _low_margin_alert(snapshot, thresholds),
        _gateway_alert(snapshot, tolerance),
    )
    return [alert for alert in candidates if alert is not None]
