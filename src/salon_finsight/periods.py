# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Time windows for Salon FinSight.

This module defines the Window value object, helpers to derive common
reporting windows (month-to-date, last month, last N days, year-to-date)
from the current date and CLI arguments, and the Time Window Filter used
by every computation module.

Filtering relies on lexicographic comparison of zero-padded ISO
``YYYY-MM-DD`` strings. The normalization adapter guarantees that every
canonical date is either in that format or None; records without a
canonical date are excluded from any windowed collection.
"""

import math
from calendar import monthrange
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from operator import attrgetter
from typing import Optional, TypeVar

from .adapters import normalize_iso_date
from .models import (
    Appointment,
    Commission,
    Expense,
    GatewayReconciliation,
    Payment,
    Snapshot,
)

T = TypeVar("T")

# Number of days used when no window is supplied.
DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class Window:
    """An inclusive [start, end] reporting window with a human-readable label."""

    start: str
    end: str
    label: str = ""

    def __post_init__(self) -> None:
        start = normalize_iso_date(self.start)
        end = normalize_iso_date(self.end)
        if start is None or end is None:
            raise ValueError(
                f"Invalid window bounds {self.start!r} → {self.end!r}, "
                "expected YYYY-MM-DD."
            )
        if end < start:
            raise ValueError("Window end date cannot be before start date.")
        # Frozen dataclass: store the normalized bounds.
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        if not self.label:
            object.__setattr__(self, "label", f"{start} → {end}")

    def contains(self, iso_date: Optional[str]) -> bool:
        if iso_date is None:
            return False
        return self.start <= iso_date <= self.end


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def window_mtd(today: Optional[date] = None) -> Window:
    """Month-to-date."""
    today = today or _today()
    return Window(
        start=today.replace(day=1).isoformat(),
        end=today.isoformat(),
        label="Month to date",
    )


def window_last_month(today: Optional[date] = None) -> Window:
    """Full previous calendar month."""
    today = today or _today()
    if today.month == 1:
        year, month = today.year - 1, 12
    else:
        year, month = today.year, today.month - 1

    last_day = monthrange(year, month)[1]
    return Window(
        start=date(year, month, 1).isoformat(),
        end=date(year, month, last_day).isoformat(),
        label="Last month",
    )


def window_last_days(days: int, today: Optional[date] = None) -> Window:
    """The last ``days`` calendar days, today included."""
    if days < 1:
        raise ValueError("A rolling window must cover at least one day.")
    today = today or _today()
    return Window(
        start=(today - timedelta(days=days - 1)).isoformat(),
        end=today.isoformat(),
        label=f"Last {days} days",
    )


def window_ytd(today: Optional[date] = None) -> Window:
    """Calendar year-to-date."""
    today = today or _today()
    return Window(
        start=date(today.year, 1, 1).isoformat(),
        end=today.isoformat(),
        label="Year to date",
    )


def window_custom(start: str, end: str) -> Window:
    """Explicit window built from two ISO dates."""
    return Window(start=start, end=end, label=f"Custom period ({start} → {end})")


def determine_window_from_args(args, today: Optional[date] = None) -> Optional[Window]:
    """
    Determine the window to use based on CLI args.

    Priority (highest to lowest):

        1. args.from_date / args.to_date (custom window; a missing bound is
           taken from the other one)
        2. args.period (mtd, last-month, last-7, last-30, ytd, all)
        3. no window (whole snapshot)

    Returns None when the whole snapshot should be used.
    """
    from_raw: Optional[str] = getattr(args, "from_date", None)
    to_raw: Optional[str] = getattr(args, "to_date", None)

    if from_raw or to_raw:
        start = from_raw or to_raw
        end = to_raw or from_raw
        return window_custom(str(start), str(end))

    period = getattr(args, "period", None)
    if not period or period == "all":
        return None
    if period == "mtd":
        return window_mtd(today)
    if period == "last-month":
        return window_last_month(today)
    if period == "last-7":
        return window_last_days(7, today)
    if period == "last-30":
        return window_last_days(30, today)
    if period == "ytd":
        return window_ytd(today)
    raise ValueError(f"Unknown period: {period!r}")


def window_days(window: Optional[Window], default: int = DEFAULT_WINDOW_DAYS) -> int:
    """
    Number of days used to average a window's revenue.

    ``max(1, ceil(end - start))`` in days, so a window from the 1st to the
    31st counts 30 days and a single-day window counts 1. Without a window
    ``default`` (30 days) applies.
    """
    if window is None:
        return default
    delta = date.fromisoformat(window.end) - date.fromisoformat(window.start)
    return max(1, math.ceil(delta.total_seconds() / 86400))


# ---------------------------------------------------------------------------
# Canonical date extractors
# ---------------------------------------------------------------------------

_DATE_EXTRACTORS: dict[type, Callable[[object], Optional[str]]] = {
    Payment: attrgetter("date"),
    Expense: attrgetter("incurred_at"),
    Commission: attrgetter("date"),
    Appointment: attrgetter("date"),
    GatewayReconciliation: attrgetter("transaction_date"),
}


def canonical_date(record: object) -> Optional[str]:
    """Return the canonical ISO date of a record, or None if it has none."""
    extractor = _DATE_EXTRACTORS.get(type(record))
    if extractor is None:
        raise TypeError(f"No canonical date for records of type {type(record)!r}")
    return extractor(record)


def filter_by_window(records: Iterable[T], window: Optional[Window]) -> tuple[T, ...]:
    """
    Keep only records whose canonical date falls within the window (inclusive).

    Without a window the collection passes through unchanged. Records whose
    canonical date is None are excluded rather than defaulted to today.
    """
    if window is None:
        return tuple(records)
    return tuple(r for r in records if window.contains(canonical_date(r)))


def filter_snapshot(snapshot: Snapshot, window: Optional[Window]) -> Snapshot:
    """Apply ``filter_by_window`` to all five collections of a snapshot."""
    if window is None:
        return snapshot
    return Snapshot(
        appointments=filter_by_window(snapshot.appointments, window),
        payments=filter_by_window(snapshot.payments, window),
        expenses=filter_by_window(snapshot.expenses, window),
        commissions=filter_by_window(snapshot.commissions, window),
        reconciliations=filter_by_window(snapshot.reconciliations, window),
    )
