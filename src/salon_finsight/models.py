# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Canonical records consumed by the Salon FinSight engine.

Every record handed to the engine is a frozen dataclass built by the
normalization adapter (see ``adapters.py``). By the time a record reaches
this module's consumers:

- monetary fields are plain floats (absent values are 0.0),
- every date field is either a zero-padded ISO ``YYYY-MM-DD`` string or
  ``None`` when the source value could not be parsed,
- enum-like fields (status, payment method, expense type) are lower-cased
  and restricted to the values listed below.

The engine only ever reads these records. They are created, mutated and
deleted exclusively by the Entity Snapshot Provider (see ``provider.py``).
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled"]
PaymentMethod = Literal["cash", "card", "transfer", "other"]
ExpenseType = Literal["fixed", "variable", "supply_purchase"]
ExpensePaymentStatus = Literal["pending", "paid", "partial"]

APPOINTMENT_STATUSES: tuple[str, ...] = (
    "pending",
    "confirmed",
    "completed",
    "cancelled",
)
PAYMENT_METHODS: tuple[str, ...] = ("cash", "card", "transfer", "other")
EXPENSE_TYPES: tuple[str, ...] = ("fixed", "variable", "supply_purchase")
EXPENSE_PAYMENT_STATUSES: tuple[str, ...] = ("pending", "paid", "partial")

# Entity kinds, as used by the storage layer and the CLI (--import KIND ...).
ENTITY_KINDS: tuple[str, ...] = (
    "appointments",
    "payments",
    "expenses",
    "commissions",
    "gateway_reconciliations",
)


@dataclass(frozen=True)
class Appointment:
    """
    A service appointment.

    ``total_amount`` has already been resolved through the price fallback
    chain (stored amount, then the linked service's base price). ``date`` is
    the canonical day of the appointment, derived from ``starts_at``.
    """

    id: str
    org_id: Optional[str] = None
    location_id: Optional[str] = None
    service_id: Optional[str] = None
    stylist_id: Optional[str] = None
    client_id: Optional[str] = None
    starts_at: Optional[str] = None
    date: Optional[str] = None
    status: str = "pending"
    total_amount: float = 0.0

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"


@dataclass(frozen=True)
class Payment:
    """A recorded payment, optionally linked to an appointment."""

    id: str
    org_id: Optional[str] = None
    appointment_id: Optional[str] = None
    amount: float = 0.0
    payment_method: str = "other"
    date: Optional[str] = None
    discount_amount: float = 0.0
    tax_amount: float = 0.0
    tip_amount: float = 0.0
    gateway_fee: float = 0.0
    gateway_settlement_date: Optional[str] = None
    gateway_settlement_amount: Optional[float] = None

    @property
    def is_settled(self) -> bool:
        return self.gateway_settlement_date is not None


@dataclass(frozen=True)
class Expense:
    """An operating expense (rent, salaries, supplies, ...)."""

    id: str
    org_id: Optional[str] = None
    location_id: Optional[str] = None
    amount: float = 0.0
    description: str = ""
    category: Optional[str] = None
    type: str = "variable"
    payment_status: str = "pending"
    incurred_at: Optional[str] = None


@dataclass(frozen=True)
class Commission:
    """A commission owed to an employee, optionally tied to an appointment."""

    id: str
    org_id: Optional[str] = None
    employee_id: Optional[str] = None
    appointment_id: Optional[str] = None
    amount: float = 0.0
    commission_rate: float = 0.0
    date: Optional[str] = None


@dataclass(frozen=True)
class GatewayReconciliation:
    """
    One payment-gateway settlement row.

    ``difference`` is nominally ``sold_amount - settled_amount`` as recorded
    upstream and may be negative. The differ recomputes the delta from the
    two amounts instead of trusting this field.
    """

    id: str
    org_id: Optional[str] = None
    gateway_name: str = ""
    transaction_date: Optional[str] = None
    sold_amount: float = 0.0
    settled_amount: float = 0.0
    credited_amount: float = 0.0
    commission_amount: float = 0.0
    difference: float = 0.0
    settlement_date: Optional[str] = None


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable point-in-time view of every collection for one scope.

    Collections are stored as tuples so a snapshot can be shared between
    computations without any risk of mutation.
    """

    appointments: tuple[Appointment, ...] = field(default_factory=tuple)
    payments: tuple[Payment, ...] = field(default_factory=tuple)
    expenses: tuple[Expense, ...] = field(default_factory=tuple)
    commissions: tuple[Commission, ...] = field(default_factory=tuple)
    reconciliations: tuple[GatewayReconciliation, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not (
            self.appointments
            or self.payments
            or self.expenses
            or self.commissions
            or self.reconciliations
        )
