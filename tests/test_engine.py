from dataclasses import fields
from datetime import date

import pytest

from salon_finsight.engine import (
    KPI_METADATA,
    KPIs,
    compute_daily_cash,
    compute_financial_metrics,
    compute_kpis,
)
from salon_finsight.models import Appointment, Commission, Expense, Payment, Snapshot
from salon_finsight.periods import Window

TODAY = date(2024, 2, 10)
JANUARY = Window("2024-01-01", "2024-01-31")


def _appt(id_, status, amount, day):
    return Appointment(id=id_, status=status, total_amount=amount, date=day)


def test_empty_snapshot_yields_zero_kpis() -> None:
    """No data is not an error: every KPI is 0.0."""
    kpis = compute_kpis(Snapshot(), today=TODAY)
    assert kpis == KPIs()
    assert all(value == 0.0 for value in kpis.as_dict().values())


def test_every_kpi_has_metadata() -> None:
    assert {f.name for f in fields(KPIs)} == set(KPI_METADATA)


def test_window_scenario_with_fixed_costs() -> None:
    """One payment of 1000 and a rent of 300 in January."""
    snapshot = Snapshot(
        payments=(Payment(id="p1", amount=1000, date="2024-01-15"),),
        expenses=(
            Expense(id="e1", amount=300, category="rent", incurred_at="2024-01-10"),
        ),
    )

    m = compute_financial_metrics(snapshot, JANUARY, today=TODAY)

    assert m.kpis.gross_revenue == pytest.approx(1000)
    assert m.kpis.net_revenue == pytest.approx(1000)
    assert m.kpis.direct_costs == 0.0
    assert m.kpis.gross_margin == pytest.approx(1000)
    assert m.kpis.total_expenses == pytest.approx(300)
    assert m.kpis.net_margin == pytest.approx(700)
    assert m.margins.net_margin_percent == pytest.approx(70.0)
    assert m.break_even.daily_fixed_cost == pytest.approx(10.0)
    assert m.break_even.break_even_point == pytest.approx(10.0)
    assert m.break_even.daily_revenue == pytest.approx(1000 / 30)
    assert m.projection.next_30_days == pytest.approx(1000)
    assert m.projection.next_90_days == pytest.approx(3000)


def test_records_outside_window_are_ignored() -> None:
    snapshot = Snapshot(
        payments=(
            Payment(id="p1", amount=1000, date="2024-01-15"),
            Payment(id="p2", amount=5000, date="2024-02-01"),
        ),
    )
    january = compute_kpis(snapshot, JANUARY, today=TODAY)
    everything = compute_kpis(snapshot, None, today=TODAY)
    assert january.gross_revenue == pytest.approx(1000)
    assert everything.gross_revenue == pytest.approx(6000)


def test_margins_ticket_and_occupancy() -> None:
    snapshot = Snapshot(
        appointments=(
            _appt("a1", "completed", 100, "2024-01-05"),
            _appt("a2", "completed", 200, "2024-01-06"),
            _appt("a3", "completed", 300, "2024-01-07"),
            _appt("a4", "cancelled", 400, "2024-01-08"),
        ),
        payments=(
            Payment(
                id="p1",
                amount=500,
                date="2024-01-05",
                discount_amount=10,
                tax_amount=40,
                gateway_settlement_date="2024-01-07",
            ),
            Payment(id="p2", amount=50, date="2024-01-06"),
        ),
        commissions=(Commission(id="c1", amount=120, date="2024-01-05"),),
        expenses=(Expense(id="e1", amount=200, incurred_at="2024-01-09"),),
    )

    kpis = compute_kpis(snapshot, JANUARY, today=TODAY)

    # max(600 appointments, 550 payments)
    assert kpis.gross_revenue == pytest.approx(600)
    assert kpis.net_revenue == pytest.approx(550)
    assert kpis.direct_costs == pytest.approx(120)
    assert kpis.gross_margin == pytest.approx(430)
    assert kpis.net_margin == pytest.approx(230)
    assert kpis.average_ticket == pytest.approx(200)
    assert kpis.occupancy_rate == pytest.approx(75.0)
    assert kpis.pending_settlement == pytest.approx(50)


def test_gross_and_net_invariants_hold() -> None:
    snapshot = Snapshot(
        appointments=(
            _appt("a1", "completed", 250, "2024-01-05"),
        ),
        payments=(
            Payment(
                id="p1",
                amount=300,
                date="2024-01-05",
                discount_amount=12.5,
                tax_amount=7.5,
            ),
        ),
    )
    m = compute_financial_metrics(snapshot, JANUARY, today=TODAY)
    assert m.kpis.gross_revenue == pytest.approx(
        max(m.revenue.signal_a, m.revenue.signal_b)
    )
    assert m.kpis.net_revenue == pytest.approx(
        m.kpis.gross_revenue - m.revenue.discounts - m.revenue.taxes, abs=1e-9
    )


def test_daily_cash_ignores_the_window() -> None:
    """Daily cash always looks at today's records, whatever the window."""
    snapshot = Snapshot(
        payments=(
            Payment(id="p1", amount=80, date="2024-02-10"),
            Payment(id="p2", amount=1000, date="2024-01-15"),
        ),
        appointments=(
            _appt("a1", "completed", 120, "2024-02-10"),
        ),
    )
    kpis = compute_kpis(snapshot, JANUARY, today=TODAY)
    assert kpis.daily_cash == pytest.approx(120)
    assert compute_daily_cash(snapshot.appointments, snapshot.payments, TODAY) == 120


def test_default_window_days_without_window() -> None:
    snapshot = Snapshot(payments=(Payment(id="p1", amount=700, date="2024-01-15"),))
    m = compute_financial_metrics(snapshot, None, today=TODAY, default_window_days=7)
    assert m.break_even.daily_revenue == pytest.approx(100)
    assert m.projection.next_30_days == pytest.approx(3000)


def test_as_dict_sections() -> None:
    m = compute_financial_metrics(Snapshot(), JANUARY, today=TODAY)
    assert list(m.as_dict()) == [
        "kpis",
        "margins",
        "occupancy",
        "break_even",
        "projection",
    ]


@pytest.mark.parametrize("window", [None, JANUARY])
def test_empty_snapshot_yields_zero_metrics(window) -> None:
    """Margins, occupancy, break-even and projection are all 0 without data."""
    m = compute_financial_metrics(Snapshot(), window, today=TODAY)
    for section, values in m.as_dict().items():
        for name, value in values.items():
            assert value == 0, f"{section}.{name}"
