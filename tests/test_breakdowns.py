import pytest

from salon_finsight.breakdowns import (
    commissions_by_employee,
    compute_breakdowns,
    expenses_by_category,
    income_expense_series,
    net_result,
    payments_by_method,
    recent_movements,
    rent_by_location,
    rent_expenses,
    salary_expenses,
)
from salon_finsight.models import Commission, Expense, Payment, Snapshot

EXPENSES = (
    Expense(
        id="e1",
        amount=300,
        category="Alquileres local 2",
        location_id="loc-2",
        incurred_at="2024-01-02",
    ),
    Expense(id="e2", amount=200, category="rent", incurred_at="2024-01-03"),
    Expense(id="e3", amount=700, category="Sueldos", incurred_at="2024-01-04"),
    Expense(id="e4", amount=50, category=None, incurred_at="2024-01-04"),
)

PAYMENTS = (
    Payment(id="p1", amount=100, payment_method="cash", date="2024-01-02"),
    Payment(id="p2", amount=400, payment_method="card", date="2024-01-03"),
    Payment(id="p3", amount=150, payment_method="cash", date="2024-01-05"),
)


def test_expenses_by_category_largest_first() -> None:
    df = expenses_by_category(EXPENSES)
    assert list(df["category"]) == ["Sueldos", "Alquileres local 2", "rent", "Other"]
    assert list(df["amount"]) == pytest.approx([700, 300, 200, 50])


def test_payments_by_method() -> None:
    df = payments_by_method(PAYMENTS)
    assert list(df["method"]) == ["card", "cash"]
    assert list(df["amount"]) == pytest.approx([400, 250])


def test_commissions_by_employee_with_names() -> None:
    commissions = [
        Commission(id="c1", employee_id="u1", amount=10),
        Commission(id="c2", employee_id="u2", amount=50),
        Commission(id="c3", employee_id="u1", amount=15),
    ]
    df = commissions_by_employee(commissions, {"u2": "Ana"})
    assert list(df["employee_id"]) == ["u2", "u1"]
    assert list(df["employee_name"]) == ["Ana", "Unknown employee"]
    assert list(df["count"]) == [1, 2]
    assert list(df["total"]) == pytest.approx([50, 25])


def test_rent_and_salary_use_keyword_matching() -> None:
    assert rent_expenses(EXPENSES) == pytest.approx(500)
    assert salary_expenses(EXPENSES) == pytest.approx(700)

    df = rent_by_location(EXPENSES)
    assert dict(zip(df["location_id"], df["amount"])) == {"general": 200, "loc-2": 300}


def test_income_expense_series_by_day() -> None:
    df = income_expense_series(PAYMENTS, EXPENSES)
    assert list(df["date"]) == [
        "2024-01-02",
        "2024-01-03",
        "2024-01-04",
        "2024-01-05",
    ]
    day4 = df[df["date"] == "2024-01-04"].iloc[0]
    assert day4["income"] == 0
    assert day4["expense"] == pytest.approx(750)


def test_recent_movements_newest_first_and_limited() -> None:
    payments = [
        Payment(id=str(i), amount=i, date=f"2024-01-{i:02d}") for i in range(1, 11)
    ]
    expenses = [Expense(id="x", amount=5, incurred_at="2024-01-20")]
    df = recent_movements(payments, expenses)
    assert len(df) == 8
    assert df.iloc[0]["id"] == "expense-x"
    assert df.iloc[1]["id"] == "payment-10"


def test_compute_breakdowns_on_empty_snapshot() -> None:
    b = compute_breakdowns(Snapshot())
    assert b.expenses_by_category.empty
    assert b.recent_movements.empty
    assert b.net_result == 0.0
    assert net_result(PAYMENTS, EXPENSES) == pytest.approx(650 - 1250)
