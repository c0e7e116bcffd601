# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Breakdown analytics for owner and accounting dashboards.

The helpers below slice a (usually window-filtered) snapshot along one
dimension: expense category, payment method, employee, location or day.
They are built on pandas group-bys and return small DataFrames ready for
display or CSV export.

Rent and salary totals use a keyword match on the expense category
("Alquileres local 2" counts as rent), unlike the fixed-cost rule of the
break-even calculator, which requires an exact category.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from .models import Commission, Expense, Payment, Snapshot

RENT_KEYWORDS: tuple[str, ...] = ("rent", "alquiler", "renta", "alquileres")
SALARY_KEYWORDS: tuple[str, ...] = (
    "salary",
    "salario",
    "salarios",
    "sueldo",
    "sueldos",
)

UNCATEGORIZED = "Other"
GENERAL_LOCATION = "general"
RECENT_MOVEMENTS_LIMIT = 8


@dataclass(frozen=True)
class Breakdowns:
    """Every breakdown of one window, as DataFrames."""

    expenses_by_category: pd.DataFrame
    payments_by_method: pd.DataFrame
    commissions_by_employee: pd.DataFrame
    rent_by_location: pd.DataFrame
    income_expense_series: pd.DataFrame
    recent_movements: pd.DataFrame
    rent_expenses: float
    salary_expenses: float
    net_result: float


def _matches_keywords(category: str | None, keywords: Sequence[str]) -> bool:
    cat = (category or "").lower()
    return any(k in cat for k in keywords)


def _keyword_total(expenses: Iterable[Expense], keywords: Sequence[str]) -> float:
    matching = (e.amount for e in expenses if _matches_keywords(e.category, keywords))
    return sum(matching, 0.0)


def _largest_first(df: pd.DataFrame, column: str) -> pd.DataFrame:
    return df.sort_values(column, ascending=False, kind="stable").reset_index(drop=True)


def expenses_by_category(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Total expense amount per category, largest first ('Other' when missing)."""
    rows = [
        {"category": e.category or UNCATEGORIZED, "amount": e.amount} for e in expenses
    ]
    if not rows:
        return pd.DataFrame(columns=["category", "amount"])

    grouped = pd.DataFrame(rows).groupby("category", as_index=False, sort=False)
    df = grouped["amount"].sum()
    return _largest_first(df, "amount")


def payments_by_method(payments: Iterable[Payment]) -> pd.DataFrame:
    """Total payment amount per payment method, largest first."""
    rows = [{"method": p.payment_method, "amount": p.amount} for p in payments]
    if not rows:
        return pd.DataFrame(columns=["method", "amount"])

    grouped = pd.DataFrame(rows).groupby("method", as_index=False, sort=False)
    df = grouped["amount"].sum()
    return _largest_first(df, "amount")


def commissions_by_employee(
    commissions: Iterable[Commission],
    employee_names: dict[str, str] | None = None,
) -> pd.DataFrame:
    """Total and count of commissions per employee, largest total first."""
    names = employee_names or {}
    rows = [
        {
            "employee_id": c.employee_id or "",
            "employee_name": names.get(c.employee_id or "", "Unknown employee"),
            "amount": c.amount,
        }
        for c in commissions
    ]
    if not rows:
        return pd.DataFrame(columns=["employee_id", "employee_name", "total", "count"])

    df = (
        pd.DataFrame(rows)
        .groupby(["employee_id", "employee_name"], as_index=False, sort=False)
        .agg(total=("amount", "sum"), count=("amount", "size"))
    )
    return _largest_first(df, "total")


def rent_expenses(expenses: Iterable[Expense]) -> float:
    return _keyword_total(expenses, RENT_KEYWORDS)


def salary_expenses(expenses: Iterable[Expense]) -> float:
    return _keyword_total(expenses, SALARY_KEYWORDS)


def rent_by_location(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Rent expenses per location ('general' for organization-wide rent)."""
    rows = [
        {"location_id": e.location_id or GENERAL_LOCATION, "amount": e.amount}
        for e in expenses
        if _matches_keywords(e.category, RENT_KEYWORDS)
    ]
    if not rows:
        return pd.DataFrame(columns=["location_id", "amount"])
    return pd.DataFrame(rows).groupby("location_id", as_index=False)["amount"].sum()


def income_expense_series(
    payments: Iterable[Payment], expenses: Iterable[Expense]
) -> pd.DataFrame:
    """Daily income (payments) and expense totals, sorted by ascending date."""
    rows = [
        {"date": p.date, "income": p.amount, "expense": 0.0} for p in payments if p.date
    ]
    rows += [
        {"date": e.incurred_at, "income": 0.0, "expense": e.amount}
        for e in expenses
        if e.incurred_at
    ]
    if not rows:
        return pd.DataFrame(columns=["date", "income", "expense"])

    df = pd.DataFrame(rows).groupby("date", as_index=False)[["income", "expense"]].sum()
    return df.sort_values("date").reset_index(drop=True)


def net_result(payments: Iterable[Payment], expenses: Iterable[Expense]) -> float:
    """Total payments minus total expenses."""
    income = sum((p.amount for p in payments), 0.0)
    return income - sum((e.amount for e in expenses), 0.0)


def recent_movements(
    payments: Iterable[Payment],
    expenses: Iterable[Expense],
    limit: int = RECENT_MOVEMENTS_LIMIT,
) -> pd.DataFrame:
    """Latest payments and expenses merged into one list, newest first."""
    columns = ["id", "type", "concept", "amount", "date", "category"]
    rows = [
        {
            "id": f"payment-{p.id}",
            "type": "income",
            "concept": p.payment_method,
            "amount": p.amount,
            "date": p.date or "",
            "category": "Sale",
        }
        for p in payments
    ]
    rows += [
        {
            "id": f"expense-{e.id}",
            "type": "expense",
            "concept": e.description or "Recorded expense",
            "amount": e.amount,
            "date": e.incurred_at or "",
            "category": e.category or "General",
        }
        for e in expenses
    ]
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    df = df.sort_values("date", ascending=False, kind="stable")
    return df.head(limit).reset_index(drop=True)


def compute_breakdowns(
    snapshot: Snapshot,
    employee_names: dict[str, str] | None = None,
) -> Breakdowns:
    """Compute every breakdown for an already window-filtered snapshot."""
    return Breakdowns(
        expenses_by_category=expenses_by_category(snapshot.expenses),
        payments_by_method=payments_by_method(snapshot.payments),
        commissions_by_employee=commissions_by_employee(
            snapshot.commissions, employee_names
        ),
        rent_by_location=rent_by_location(snapshot.expenses),
        income_expense_series=income_expense_series(
            snapshot.payments, snapshot.expenses
        ),
        recent_movements=recent_movements(snapshot.payments, snapshot.expenses),
        rent_expenses=rent_expenses(snapshot.expenses),
        salary_expenses=salary_expenses(snapshot.expenses),
        net_result=net_result(snapshot.payments, snapshot.expenses),
    )
