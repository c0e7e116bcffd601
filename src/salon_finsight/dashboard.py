# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Dashboard orchestration.

``compute_dashboard()`` runs the whole analytics pipeline for one scope
and one window, so that the CLI (or any other front-end) only has to
render the result:

- financial metrics over the window-filtered snapshot,
- alerts over the full snapshot (they carry their own time logic),
- gateway reconciliation differences, restricted to the window,
- breakdowns over the window-filtered snapshot.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .alerts import Alert, evaluate_alerts
from .breakdowns import Breakdowns, compute_breakdowns
from .config import AnalyticsSettings
from .engine import FinancialMetrics, compute_financial_metrics
from .models import Snapshot
from .periods import Window, _today, filter_by_window, filter_snapshot
from .reconciliation import ReconciliationDifference, describe_differences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardResult:
    window: Optional[Window]
    metrics: FinancialMetrics
    alerts: list[Alert]
    differences: list[ReconciliationDifference]
    breakdowns: Breakdowns

    def as_dict(self) -> dict[str, object]:
        """Plain serializable view (DataFrame breakdowns are left out)."""
        return {
            "window": (
                None
                if self.window is None
                else {
                    "start": self.window.start,
                    "end": self.window.end,
                    "label": self.window.label,
                }
            ),
            "metrics": self.metrics.as_dict(),
            "alerts": [a.as_dict() for a in self.alerts],
            "differences": [d.as_dict() for d in self.differences],
        }


def compute_dashboard(
    snapshot: Snapshot,
    window: Optional[Window] = None,
    settings: Optional[AnalyticsSettings] = None,
    today: Optional[date] = None,
    employee_names: Optional[dict[str, str]] = None,
) -> DashboardResult:
    """
    Compute every dashboard section for one snapshot.

    Parameters
    ----------
    snapshot:
        Unfiltered snapshot of one organization/location scope.
    window:
        Reporting window; None analyses the whole snapshot.
    settings:
        Analytics settings (fixed-cost rules, tolerance, alert thresholds).
        Defaults to ``AnalyticsSettings()``.
    today:
        Reference date for daily cash and the revenue-drop alert.
    employee_names:
        Optional mapping of employee id to display name for the
        commissions breakdown.

    Returns
    -------
    DashboardResult
    """
    settings = settings or AnalyticsSettings()
    today = today or _today()

    metrics = compute_financial_metrics(
        snapshot,
        window,
        today=today,
        fixed_cost_categories=settings.fixed_cost_categories,
        fixed_cost_divisor_days=settings.fixed_cost_divisor_days,
        default_window_days=settings.default_window_days,
    )

    alerts: list[Alert] = []
    if settings.alerts_enabled:
        alerts = evaluate_alerts(
            snapshot,
            settings.alert_thresholds,
            today=today,
            tolerance=settings.reconciliation_tolerance,
        )

    differences = describe_differences(
        filter_by_window(snapshot.reconciliations, window),
        settings.reconciliation_tolerance,
    )

    breakdowns = compute_breakdowns(filter_snapshot(snapshot, window), employee_names)

    logger.info(
        "Dashboard computed for %s: %d alert(s), %d gateway difference(s)",
        window.label if window is not None else "all data",
        len(alerts),
        len(differences),
    )
    return DashboardResult(
        window=window,
        metrics=metrics,
        alerts=alerts,
        differences=differences,
        breakdowns=breakdowns,
    )
