import pytest

from salon_finsight.models import GatewayReconciliation
from salon_finsight.reconciliation import (
    describe_differences,
    detect_differences,
    summarize_differences,
)


def _row(id_, sold, settled, gateway="mercadopago"):
    return GatewayReconciliation(
        id=id_,
        gateway_name=gateway,
        transaction_date="2024-01-10",
        sold_amount=sold,
        settled_amount=settled,
    )


def test_only_rows_beyond_tolerance_are_flagged() -> None:
    rows = [_row("r1", 1000, 1000), _row("r2", 500, 490)]
    assert detect_differences(rows) == [rows[1]]


def test_detection_is_idempotent_and_order_preserving() -> None:
    rows = [_row("r1", 10, 5), _row("r2", 3, 3), _row("r3", 1, 4)]
    first = detect_differences(rows)
    assert [r.id for r in first] == ["r1", "r3"]
    assert detect_differences(first) == first


def test_sub_cent_differences_are_ignored() -> None:
    assert detect_differences([_row("r1", 100, 100.005)]) == []
    assert detect_differences([_row("r1", 100, 99.5)], tolerance=1.0) == []


def test_describe_and_summarize() -> None:
    rows = [
        _row("r1", 500, 490, gateway="mercadopago"),
        _row("r2", 100, 120, gateway="stripe"),
        _row("r3", 50, 45, gateway="mercadopago"),
    ]
    diffs = describe_differences(rows)
    assert [d.delta for d in diffs] == pytest.approx([10, -20, 5])
    assert diffs[0].as_dict()["gateway_name"] == "mercadopago"

    summary = summarize_differences(diffs)
    assert [(s.gateway_name, s.count) for s in summary] == [
        ("mercadopago", 2),
        ("stripe", 1),
    ]
    assert summary[0].total_delta == pytest.approx(15)
