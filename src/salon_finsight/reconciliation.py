# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Gateway reconciliation differ.

Payment gateways settle collected funds late and net of fees. Each
reconciliation row records what was sold through a gateway and what the
gateway actually settled. A row is a *difference* when the two amounts
disagree by more than one cent.

The differ recomputes the delta from ``sold_amount`` and ``settled_amount``
instead of trusting the stored ``difference`` column. Results keep the
input order, so repeated calls on the same rows return the same list.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass

from .models import GatewayReconciliation

# Cents tolerance.
DEFAULT_TOLERANCE = 0.01


@dataclass(frozen=True)
class ReconciliationDifference:
    """A reconciliation row flagged by the differ, with the recomputed delta."""

    id: str
    gateway_name: str
    transaction_date: str
    sold_amount: float
    settled_amount: float
    delta: float

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class GatewaySummary:
    gateway_name: str
    count: int
    total_delta: float


def has_difference(
    row: GatewayReconciliation, tolerance: float = DEFAULT_TOLERANCE
) -> bool:
    return abs(row.sold_amount - row.settled_amount) > tolerance


def detect_differences(
    rows: Iterable[GatewayReconciliation],
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[GatewayReconciliation]:
    """
    Return every row where ``|sold_amount - settled_amount| > tolerance``.

    The input order is preserved and the input is never modified.
    """
    return [row for row in rows if has_difference(row, tolerance)]


def describe_differences(
    rows: Iterable[GatewayReconciliation],
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[ReconciliationDifference]:
    """Same selection as ``detect_differences``, as review-ready records."""
    return [
        ReconciliationDifference(
            id=row.id,
            gateway_name=row.gateway_name,
            transaction_date=row.transaction_date or "",
            sold_amount=row.sold_amount,
            settled_amount=row.settled_amount,
            delta=row.sold_amount - row.settled_amount,
        )
        for row in detect_differences(rows, tolerance)
    ]


def summarize_differences(
    differences: Iterable[ReconciliationDifference],
) -> list[GatewaySummary]:
    """Group flagged differences per gateway, in order of first appearance."""
    totals: dict[str, list[float]] = {}
    for diff in differences:
        bucket = totals.setdefault(diff.gateway_name, [0, 0.0])
        bucket[0] += 1
        bucket[1] += diff.delta

    return [
        GatewaySummary(gateway_name=name, count=int(count), total_delta=total)
        for name, (count, total) in totals.items()
    ]
