# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Normalization adapter for Salon FinSight.

Raw rows coming from the Entity Snapshot Provider (SQLite rows, CSV rows,
API payloads) are loosely shaped: keys may be camelCase or snake_case,
amounts may be missing or stored as text, dates may be full timestamps,
and an appointment's value may live on the appointment itself or on its
linked service.

This module is the single place where that variability is resolved. It
emits the canonical records defined in ``models.py`` so that the
computation modules never have to deal with fallback chains or date
parsing:

- ``normalize_iso_date`` enforces the "zero-padded ISO YYYY-MM-DD or None"
  invariant relied upon by every string comparison in the engine,
- ``to_amount`` turns anything unparseable into 0.0,
- ``resolve_appointment_amount`` implements the appointment price fallback
  (stored amount, service price, service base price, price list),
- ``*_from_row`` builders map one raw mapping to one canonical record.

None of the functions below raise on malformed optional fields. Problems
are logged and resolved by the default policy.
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from .models import (
    APPOINTMENT_STATUSES,
    EXPENSE_PAYMENT_STATUSES,
    EXPENSE_TYPES,
    PAYMENT_METHODS,
    Appointment,
    Commission,
    Expense,
    GatewayReconciliation,
    Payment,
    Snapshot,
)

logger = logging.getLogger(__name__)

# Leading "YYYY-M-D" of a date or timestamp string (time part and offset ignored).
_ISO_PREFIX_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_iso_date(value: Any) -> Optional[str]:
    """
    Normalize a date-like value to a zero-padded ISO ``YYYY-MM-DD`` string.

    Accepted inputs:
        - ``datetime.date`` / ``datetime.datetime`` / ``pandas.Timestamp``,
        - strings starting with ``YYYY-M-D`` (e.g. ``"2024-1-5"``,
          ``"2024-01-05T10:30:00-03:00"``, ``"2024-01-05 10:30"``).

    For timestamps, the calendar day *as written* is kept (no timezone
    conversion).

    Returns:
        The normalized string, or None when the value is missing or cannot
        be interpreted as a valid calendar date.
    """
    if _is_missing(value):
        return None

    if isinstance(value, pd.Timestamp):
        return value.date().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    match = _ISO_PREFIX_RE.match(str(value))
    if match is None:
        logger.debug("Unparseable date value %r", value)
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        logger.debug("Invalid calendar date %r", value)
        return None


def to_amount(value: Any) -> float:
    """Coerce a monetary value to float; missing or unparseable values give 0.0."""
    if _is_missing(value):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable amount %r, using 0.0", value)
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def _optional_amount(value: Any) -> Optional[float]:
    if _is_missing(value):
        return None
    return to_amount(value)


def _optional_str(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    # CSV readers turn integer identifiers into floats ("12" -> 12.0).
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _record_id(row: Mapping[str, Any]) -> str:
    return _optional_str(row.get("id")) or ""


def _pick(row: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-missing value among ``keys`` (aliases), or None."""
    for key in keys:
        if key in row and not _is_missing(row[key]):
            return row[key]
    return None


def _choice(value: Any, allowed: tuple[str, ...], default: str, what: str) -> str:
    if _is_missing(value):
        return default
    normalized = str(value).strip().lower()
    if normalized in allowed:
        return normalized
    logger.warning("Unknown %s %r, using %r", what, value, default)
    return default


def resolve_appointment_amount(
    row: Mapping[str, Any],
    service_prices: Optional[Mapping[str, float]] = None,
) -> float:
    """
    Resolve the value of an appointment.

    Resolution order (first strictly positive value wins):

        1. ``total_amount`` / ``totalAmount`` stored on the appointment,
        2. ``servicePrice`` / ``service_price``,
        3. the linked service's ``base_price`` (nested ``service`` mapping or
           flattened ``service_base_price`` column),
        4. ``service_prices[service_id]`` when a price list is given.

    Returns 0.0 when nothing applies.
    """
    stored = to_amount(_pick(row, "total_amount", "totalAmount"))
    if stored > 0:
        return stored

    service_price = to_amount(_pick(row, "servicePrice", "service_price"))
    if service_price > 0:
        return service_price

    service = row.get("service")
    if isinstance(service, Mapping):
        base_price = to_amount(_pick(service, "base_price", "basePrice"))
    else:
        base_price = to_amount(_pick(row, "service_base_price", "serviceBasePrice"))
    if base_price > 0:
        return base_price

    if service_prices:
        service_id = _optional_str(_pick(row, "service_id", "serviceId"))
        if service_id is not None:
            return to_amount(service_prices.get(service_id))

    return 0.0


def appointment_from_row(
    row: Mapping[str, Any],
    service_prices: Optional[Mapping[str, float]] = None,
) -> Appointment:
    """Build a canonical Appointment from a raw mapping."""
    starts_at_raw = _pick(row, "starts_at", "startsAt")
    starts_at = None if starts_at_raw is None else str(starts_at_raw).strip()

    # Canonical day: date portion of starts_at, else the explicit date field.
    canonical_date = normalize_iso_date(starts_at_raw)
    if canonical_date is None:
        canonical_date = normalize_iso_date(row.get("date"))

    status_raw = _pick(row, "status")
    status = "pending" if status_raw is None else str(status_raw).strip().lower()
    if status not in APPOINTMENT_STATUSES:
        logger.warning("Unknown appointment status %r", status_raw)

    return Appointment(
        id=_record_id(row),
        org_id=_optional_str(_pick(row, "org_id", "orgId")),
        location_id=_optional_str(
            _pick(row, "location_id", "locationId", "salon_id", "salonId")
        ),
        service_id=_optional_str(_pick(row, "service_id", "serviceId")),
        stylist_id=_optional_str(_pick(row, "stylist_id", "stylistId")),
        client_id=_optional_str(_pick(row, "client_id", "clientId")),
        starts_at=starts_at,
        date=canonical_date,
        status=status,
        total_amount=resolve_appointment_amount(row, service_prices),
    )


def payment_from_row(row: Mapping[str, Any]) -> Payment:
    """Build a canonical Payment from a raw mapping (camelCase or snake_case)."""
    return Payment(
        id=_record_id(row),
        org_id=_optional_str(_pick(row, "org_id", "orgId")),
        appointment_id=_optional_str(_pick(row, "appointment_id", "appointmentId")),
        amount=to_amount(_pick(row, "amount")),
        payment_method=_choice(
            _pick(row, "payment_method", "paymentMethod"),
            PAYMENT_METHODS,
            "other",
            "payment method",
        ),
        date=normalize_iso_date(_pick(row, "date")),
        discount_amount=to_amount(_pick(row, "discount_amount", "discountAmount")),
        tax_amount=to_amount(_pick(row, "tax_amount", "taxAmount")),
        tip_amount=to_amount(_pick(row, "tip_amount", "tipAmount")),
        gateway_fee=to_amount(_pick(row, "gateway_fee", "gatewayFee")),
        gateway_settlement_date=normalize_iso_date(
            _pick(row, "gateway_settlement_date", "gatewaySettlementDate")
        ),
        gateway_settlement_amount=_optional_amount(
            _pick(row, "gateway_settlement_amount", "gatewaySettlementAmount")
        ),
    )


def expense_from_row(row: Mapping[str, Any]) -> Expense:
    """Build a canonical Expense from a raw mapping."""
    return Expense(
        id=_record_id(row),
        org_id=_optional_str(_pick(row, "org_id", "orgId")),
        location_id=_optional_str(
            _pick(row, "location_id", "locationId", "salon_id", "salonId")
        ),
        amount=to_amount(_pick(row, "amount")),
        description=str(_pick(row, "description") or ""),
        category=_optional_str(_pick(row, "category")),
        type=_choice(_pick(row, "type"), EXPENSE_TYPES, "variable", "expense type"),
        payment_status=_choice(
            _pick(row, "payment_status", "paymentStatus"),
            EXPENSE_PAYMENT_STATUSES,
            "pending",
            "expense payment status",
        ),
        incurred_at=normalize_iso_date(_pick(row, "incurred_at", "incurredAt")),
    )


def commission_from_row(row: Mapping[str, Any]) -> Commission:
    """Build a canonical Commission from a raw mapping."""
    rate = to_amount(_pick(row, "commission_rate", "commissionRate"))
    return Commission(
        id=_record_id(row),
        org_id=_optional_str(_pick(row, "org_id", "orgId")),
        employee_id=_optional_str(_pick(row, "employee_id", "employeeId")),
        appointment_id=_optional_str(_pick(row, "appointment_id", "appointmentId")),
        amount=to_amount(_pick(row, "amount")),
        commission_rate=min(max(rate, 0.0), 100.0),
        date=normalize_iso_date(_pick(row, "date")),
    )


def reconciliation_from_row(row: Mapping[str, Any]) -> GatewayReconciliation:
    """Build a canonical GatewayReconciliation from a raw mapping."""
    return GatewayReconciliation(
        id=_record_id(row),
        org_id=_optional_str(_pick(row, "org_id", "orgId")),
        gateway_name=str(_pick(row, "gateway_name", "gatewayName") or ""),
        transaction_date=normalize_iso_date(
            _pick(row, "transaction_date", "transactionDate")
        ),
        sold_amount=to_amount(_pick(row, "sold_amount", "soldAmount")),
        settled_amount=to_amount(_pick(row, "settled_amount", "settledAmount")),
        credited_amount=to_amount(_pick(row, "credited_amount", "creditedAmount")),
        commission_amount=to_amount(
            _pick(row, "commission_amount", "commissionAmount")
        ),
        difference=to_amount(_pick(row, "difference")),
        settlement_date=normalize_iso_date(
            _pick(row, "settlement_date", "settlementDate")
        ),
    )


ROW_BUILDERS = {
    "appointments": appointment_from_row,
    "payments": payment_from_row,
    "expenses": expense_from_row,
    "commissions": commission_from_row,
    "gateway_reconciliations": reconciliation_from_row,
}


def snapshot_from_records(
    *,
    appointments: Iterable[Mapping[str, Any]] = (),
    payments: Iterable[Mapping[str, Any]] = (),
    expenses: Iterable[Mapping[str, Any]] = (),
    commissions: Iterable[Mapping[str, Any]] = (),
    reconciliations: Iterable[Mapping[str, Any]] = (),
    service_prices: Optional[Mapping[str, float]] = None,
) -> Snapshot:
    """
    Build a Snapshot from raw mappings.

    This is the adapter entry point for callers holding plain dictionaries
    (API payloads, fixtures, notebooks).
    """
    return Snapshot(
        appointments=tuple(
            appointment_from_row(r, service_prices) for r in appointments
        ),
        payments=tuple(payment_from_row(r) for r in payments),
        expenses=tuple(expense_from_row(r) for r in expenses),
        commissions=tuple(commission_from_row(r) for r in commissions),
        reconciliations=tuple(reconciliation_from_row(r) for r in reconciliations),
    )
