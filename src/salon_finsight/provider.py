# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Entity Snapshot Providers.

A provider supplies the immutable collections the engine works on, scoped
to one organization (and optionally one location). This module defines:

- ``SnapshotProvider``: the boundary protocol expected by the engine,
- ``SqliteSnapshotProvider``: reads the local database (db.py), optionally
  through an injected ``QueryCache``,
- ``InMemorySnapshotProvider``: serves canonical records held in memory
  (tests, notebooks, API payloads already normalized),
- ``load_snapshot()``: assembles a ``Snapshot`` from any provider.

Fetch failures are the provider's concern. The engine only ever receives
resolved, possibly empty, collections.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Optional, Protocol

from .cache import QueryCache
from .db import DatabaseConfig, ExpenseFilters, load_records
from .models import (
    Appointment,
    Commission,
    Expense,
    GatewayReconciliation,
    Payment,
    Snapshot,
)
from .periods import Window

logger = logging.getLogger(__name__)


class SnapshotProvider(Protocol):
    def get_appointments(
        self, org_id: str, location_id: Optional[str] = None
    ) -> Sequence[Appointment]: ...

    def get_payments(self, org_id: str) -> Sequence[Payment]: ...

    def get_expenses(
        self, org_id: str, filters: Optional[ExpenseFilters] = None
    ) -> Sequence[Expense]: ...

    def get_commissions(self, org_id: str) -> Sequence[Commission]: ...

    def get_gateway_reconciliations(
        self, org_id: str, window: Optional[Window] = None
    ) -> Sequence[GatewayReconciliation]: ...


def _cache_key(kind: str, org_id: str, *parts: object) -> str:
    suffix = ":".join("" if p is None else str(p) for p in parts)
    return f"{kind}:{org_id}:{suffix}"


class SqliteSnapshotProvider:
    """Provider backed by the local SQLite database."""

    def __init__(self, cfg: DatabaseConfig, cache: Optional[QueryCache] = None) -> None:
        self.cfg = cfg
        self.cache = cache

    def _load(self, key: str, loader) -> tuple:
        if self.cache is None:
            return tuple(loader())
        return self.cache.get_or_load(key, lambda: tuple(loader()))

    def get_appointments(
        self, org_id: str, location_id: Optional[str] = None
    ) -> tuple[Appointment, ...]:
        return self._load(
            _cache_key("appointments", org_id, location_id),
            lambda: load_records(
                self.cfg, "appointments", org_id, location_id=location_id
            ),
        )

    def get_payments(self, org_id: str) -> tuple[Payment, ...]:
        return self._load(
            _cache_key("payments", org_id),
            lambda: load_records(self.cfg, "payments", org_id),
        )

    def get_expenses(
        self, org_id: str, filters: Optional[ExpenseFilters] = None
    ) -> tuple[Expense, ...]:
        return self._load(
            _cache_key("expenses", org_id, filters),
            lambda: load_records(self.cfg, "expenses", org_id, expense_filters=filters),
        )

    def get_commissions(self, org_id: str) -> tuple[Commission, ...]:
        return self._load(
            _cache_key("commissions", org_id),
            lambda: load_records(self.cfg, "commissions", org_id),
        )

    def get_gateway_reconciliations(
        self, org_id: str, window: Optional[Window] = None
    ) -> tuple[GatewayReconciliation, ...]:
        start = window.start if window is not None else None
        end = window.end if window is not None else None
        return self._load(
            _cache_key("gateway_reconciliations", org_id, start, end),
            lambda: load_records(
                self.cfg, "gateway_reconciliations", org_id, start=start, end=end
            ),
        )

    def invalidate(self, org_id: str) -> None:
        """Forget cached collections of one organization (after an import)."""
        if self.cache is None:
            return
        for kind in (
            "appointments",
            "payments",
            "expenses",
            "commissions",
            "gateway_reconciliations",
        ):
            self.cache.invalidate_prefix(f"{kind}:{org_id}:")


class InMemorySnapshotProvider:
    """Provider serving canonical records kept in memory."""

    def __init__(
        self,
        appointments: Iterable[Appointment] = (),
        payments: Iterable[Payment] = (),
        expenses: Iterable[Expense] = (),
        commissions: Iterable[Commission] = (),
        reconciliations: Iterable[GatewayReconciliation] = (),
    ) -> None:
        self.appointments = tuple(appointments)
        self.payments = tuple(payments)
        self.expenses = tuple(expenses)
        self.commissions = tuple(commissions)
        self.reconciliations = tuple(reconciliations)

    def get_appointments(
        self, org_id: str, location_id: Optional[str] = None
    ) -> tuple[Appointment, ...]:
        return tuple(
            a
            for a in self.appointments
            if a.org_id == org_id
            and (location_id is None or a.location_id == location_id)
        )

    def get_payments(self, org_id: str) -> tuple[Payment, ...]:
        return tuple(p for p in self.payments if p.org_id == org_id)

    def get_expenses(
        self, org_id: str, filters: Optional[ExpenseFilters] = None
    ) -> tuple[Expense, ...]:
        f = filters or ExpenseFilters()
        return tuple(
            e
            for e in self.expenses
            if e.org_id == org_id
            and (f.location_id is None or e.location_id in (f.location_id, None))
            and (
                f.category is None
                or (e.category or "").lower() == f.category.lower()
            )
            and (f.type is None or e.type == f.type)
            and (f.payment_status is None or e.payment_status == f.payment_status)
        )

    def get_commissions(self, org_id: str) -> tuple[Commission, ...]:
        return tuple(c for c in self.commissions if c.org_id == org_id)

    def get_gateway_reconciliations(
        self, org_id: str, window: Optional[Window] = None
    ) -> tuple[GatewayReconciliation, ...]:
        return tuple(
            r
            for r in self.reconciliations
            if r.org_id == org_id
            and (window is None or window.contains(r.transaction_date))
        )


def load_snapshot(
    provider: SnapshotProvider,
    org_id: str,
    location_id: Optional[str] = None,
) -> Snapshot:
    """
    Assemble the full (unwindowed) snapshot of one scope.

    Appointments and expenses are narrowed to the location when one is
    given; payments, commissions and reconciliations are organization-wide.
    """
    expense_filters = ExpenseFilters(location_id=location_id) if location_id else None

    snapshot = Snapshot(
        appointments=tuple(provider.get_appointments(org_id, location_id)),
        payments=tuple(provider.get_payments(org_id)),
        expenses=tuple(provider.get_expenses(org_id, expense_filters)),
        commissions=tuple(provider.get_commissions(org_id)),
        reconciliations=tuple(provider.get_gateway_reconciliations(org_id)),
    )
    logger.debug(
        "Loaded snapshot for org=%s location=%s: %d appointments, %d payments, "
        "%d expenses, %d commissions, %d reconciliations",
        org_id,
        location_id,
        len(snapshot.appointments),
        len(snapshot.payments),
        len(snapshot.expenses),
        len(snapshot.commissions),
        len(snapshot.reconciliations),
    )
    return snapshot
