import pytest

from salon_finsight.models import Appointment, Payment
from salon_finsight.reconciler import gross_revenue, resolve_revenue


def _appt(id_, status, amount):
    return Appointment(id=id_, status=status, total_amount=amount, date="2024-01-10")


def test_gross_revenue_is_max_of_both_signals_not_sum() -> None:
    """Only completed appointments count for signal A; the larger signal wins."""
    appointments = [_appt("a1", "completed", 500), _appt("a2", "pending", 300)]
    payments = [Payment(id="p1", amount=400, discount_amount=20, tax_amount=30)]

    res = resolve_revenue(appointments, payments)

    assert res.signal_a == pytest.approx(500)
    assert res.signal_b == pytest.approx(400)
    assert res.gross_revenue == pytest.approx(500)
    assert res.source == "appointments"
    # Discounts and taxes always come from payments.
    assert res.net_revenue == pytest.approx(450)
    assert gross_revenue(appointments, payments) == pytest.approx(500)


def test_payments_win_ties() -> None:
    res = resolve_revenue(
        [_appt("a1", "completed", 100)], [Payment(id="p1", amount=100)]
    )
    assert res.gross_revenue == pytest.approx(100)
    assert res.source == "payments"


def test_empty_inputs_resolve_to_zero() -> None:
    res = resolve_revenue([], [])
    assert res.gross_revenue == 0.0
    assert res.net_revenue == 0.0
