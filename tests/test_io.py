import pandas as pd
import pytest

from salon_finsight.io import read_entity_csv, to_snake_case


def test_to_snake_case() -> None:
    assert to_snake_case("paymentMethod") == "payment_method"
    assert to_snake_case("gatewaySettlementDate") == "gateway_settlement_date"
    assert to_snake_case("payment_method") == "payment_method"
    assert to_snake_case(" ID ") == "id"


def test_read_entity_csv_normalizes_columns_and_empty_cells(tmp_path) -> None:
    path = tmp_path / "payments.csv"
    path.write_text(
        "id,amount,paymentMethod,date,gatewaySettlementDate\n"
        "p1,100.50,card,2024-01-05,\n"
        "p2,20,cash,2024-01-06,2024-01-08\n",
        encoding="utf-8",
    )

    df = read_entity_csv(path, "payments")

    assert list(df.columns) == [
        "id",
        "amount",
        "payment_method",
        "date",
        "gateway_settlement_date",
    ]
    # Cells are kept as text; parsing is left to the adapter.
    assert df.loc[0, "amount"] == "100.50"
    assert pd.isna(df.loc[0, "gateway_settlement_date"])
    assert df.loc[1, "gateway_settlement_date"] == "2024-01-08"


def test_read_entity_csv_accepts_alternative_columns(tmp_path) -> None:
    """Appointments need either starts_at or date."""
    path = tmp_path / "appointments.csv"
    path.write_text("id,status,date\na1,completed,2024-01-05\n", encoding="utf-8")
    assert len(read_entity_csv(path, "appointments")) == 1


def test_read_entity_csv_missing_columns(tmp_path) -> None:
    path = tmp_path / "expenses.csv"
    path.write_text("id,amount\ne1,10\n", encoding="utf-8")
    with pytest.raises(ValueError, match="incurred_at"):
        read_entity_csv(path, "expenses")


def test_read_entity_csv_unknown_kind(tmp_path) -> None:
    path = tmp_path / "x.csv"
    path.write_text("id\n1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unknown entity kind"):
        read_entity_csv(path, "invoices")
