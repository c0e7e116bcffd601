# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Revenue reconciliation for Salon FinSight.

Two independent signals exist for the revenue of a period:

- signal A: value of the completed appointments,
- signal B: sum of the recorded payments.

Appointment completion and payment recording are entered asynchronously,
so either signal may lag the other. Gross revenue is the *larger* of the
two signals (never their sum). Net revenue then subtracts the discounts
and taxes recorded on the period's payments, whichever signal produced
the gross figure.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from .models import Appointment, Payment

RevenueSource = Literal["appointments", "payments"]


@dataclass(frozen=True)
class RevenueResolution:
    """
    Result of reconciling the two revenue signals of a period.

    Attributes:
        signal_a: Value of the completed appointments.
        signal_b: Sum of payment amounts.
        gross_revenue: max(signal_a, signal_b).
        discounts: Sum of payment discounts.
        taxes: Sum of payment taxes.
        net_revenue: gross_revenue - discounts - taxes.
        source: Signal retained for the gross figure ('payments' on ties).
    """

    signal_a: float
    signal_b: float
    gross_revenue: float
    discounts: float
    taxes: float
    net_revenue: float
    source: RevenueSource


def completed_appointments(appointments: Iterable[Appointment]) -> list[Appointment]:
    return [a for a in appointments if a.is_completed]


def appointment_revenue(appointments: Iterable[Appointment]) -> float:
    """Signal A: sum of ``total_amount`` over completed appointments."""
    return sum((a.total_amount for a in appointments if a.is_completed), 0.0)


def payment_revenue(payments: Iterable[Payment]) -> float:
    """Signal B: sum of payment amounts."""
    return sum((p.amount for p in payments), 0.0)


def gross_revenue(
    appointments: Iterable[Appointment], payments: Iterable[Payment]
) -> float:
    """Larger of the two revenue signals."""
    return max(appointment_revenue(appointments), payment_revenue(payments))


def resolve_revenue(
    appointments: Iterable[Appointment],
    payments: Iterable[Payment],
) -> RevenueResolution:
    """
    Reconcile appointment and payment revenue for one window.

    Args:
        appointments: Window-filtered appointments (any status).
        payments: Window-filtered payments.

    Returns:
        A RevenueResolution. Discounts and taxes always come from the
        payments, even when signal A produced the gross figure.
    """
    payments = list(payments)

    signal_a = appointment_revenue(appointments)
    signal_b = payment_revenue(payments)
    gross = max(signal_a, signal_b)

    discounts = sum((p.discount_amount for p in payments), 0.0)
    taxes = sum((p.tax_amount for p in payments), 0.0)

    return RevenueResolution(
        signal_a=signal_a,
        signal_b=signal_b,
        gross_revenue=gross,
        discounts=discounts,
        taxes=taxes,
        net_revenue=gross - discounts - taxes,
        source="appointments" if signal_a > signal_b else "payments",
    )
