from datetime import date
from types import SimpleNamespace

import pytest

import salon_finsight.periods as periods
from salon_finsight.models import Expense, GatewayReconciliation, Payment, Snapshot


def test_window_normalizes_bounds_and_sets_label() -> None:
    w = periods.Window("2024-1-5", "2024-01-31")
    assert w.start == "2024-01-05"
    assert w.end == "2024-01-31"
    assert w.label == "2024-01-05 → 2024-01-31"


def test_window_rejects_invalid_bounds() -> None:
    with pytest.raises(ValueError):
        periods.Window("2024-02-01", "2024-01-01")
    with pytest.raises(ValueError):
        periods.Window("not a date", "2024-01-01")


def test_predefined_windows() -> None:
    """Predefined windows are computed relative to an injected 'today'."""
    today = date(2024, 3, 15)

    mtd = periods.window_mtd(today)
    assert (mtd.start, mtd.end) == ("2024-03-01", "2024-03-15")

    ytd = periods.window_ytd(today)
    assert (ytd.start, ytd.end) == ("2024-01-01", "2024-03-15")

    last7 = periods.window_last_days(7, today)
    assert (last7.start, last7.end) == ("2024-03-09", "2024-03-15")

    last_month = periods.window_last_month(date(2024, 1, 10))
    assert (last_month.start, last_month.end) == ("2023-12-01", "2023-12-31")


def test_determine_window_from_args_priority() -> None:
    """Custom dates win over --period; 'all' means no window."""
    today = date(2024, 3, 15)

    args = SimpleNamespace(from_date="2024-01-01", to_date=None, period="mtd")
    w = periods.determine_window_from_args(args, today)
    assert (w.start, w.end) == ("2024-01-01", "2024-01-01")

    args = SimpleNamespace(from_date=None, to_date=None, period="last-30")
    w = periods.determine_window_from_args(args, today)
    assert (w.start, w.end) == ("2024-02-15", "2024-03-15")

    args = SimpleNamespace(from_date=None, to_date=None, period="all")
    assert periods.determine_window_from_args(args, today) is None
    assert periods.determine_window_from_args(SimpleNamespace(), today) is None


def test_window_days() -> None:
    """ceil(end - start) in days, at least 1; the default (30) without window."""
    assert periods.window_days(periods.Window("2024-01-01", "2024-01-31")) == 30
    assert periods.window_days(periods.Window("2024-01-01", "2024-01-01")) == 1
    assert periods.window_days(None) == 30
    assert periods.window_days(None, default=7) == 7


def test_filter_by_window_is_inclusive_and_drops_undated_records() -> None:
    payments = (
        Payment(id="p0", amount=1, date="2023-12-31"),
        Payment(id="p1", amount=1, date="2024-01-01"),
        Payment(id="p2", amount=1, date="2024-01-31"),
        Payment(id="p3", amount=1, date=None),
    )
    w = periods.Window("2024-01-01", "2024-01-31")

    kept = periods.filter_by_window(payments, w)
    assert [p.id for p in kept] == ["p1", "p2"]
    assert periods.filter_by_window(payments, None) == payments


def test_filter_snapshot_uses_each_canonical_date() -> None:
    snapshot = Snapshot(
        payments=(Payment(id="p1", date="2024-01-15"),),
        expenses=(
            Expense(id="e1", incurred_at="2024-01-10"),
            Expense(id="e2", incurred_at="2024-02-10"),
        ),
    )
    january = periods.Window("2024-01-01", "2024-01-31")
    filtered = periods.filter_snapshot(snapshot, january)
    assert [e.id for e in filtered.expenses] == ["e1"]
    assert len(filtered.payments) == 1


def test_canonical_date_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        periods.canonical_date(object())


def test_canonical_date_per_record_type() -> None:
    expense = Expense(id="e1", incurred_at="2024-01-10")
    row = GatewayReconciliation(id="r1", transaction_date="2024-01-05")
    assert periods.canonical_date(expense) == "2024-01-10"
    assert periods.canonical_date(row) == "2024-01-05"
    assert periods.canonical_date(Payment(id="p1")) is None
