from pathlib import Path

import pytest

from salon_finsight import __version__
from salon_finsight.cli import main


def _setup(tmp_path: Path) -> tuple[Path, Path]:
    config = tmp_path / "salon_finsight_config.toml"
    config.write_text(
        '[organization]\norg_id = "org-1"\n\n[database]\npath = "db.sqlite"\n',
        encoding="utf-8",
    )
    payments = tmp_path / "payments.csv"
    payments.write_text(
        "id,amount,paymentMethod,date\n"
        "p1,1000,card,2024-01-15\n"
        "p2,250,cash,2024-01-20\n",
        encoding="utf-8",
    )
    return config, payments


def test_version(capsys) -> None:
    main(["--version"])
    assert __version__ in capsys.readouterr().out


def test_import_and_render_tables(tmp_path, capsys) -> None:
    config, payments = _setup(tmp_path)

    main(
        [
            "--config",
            str(config),
            "--import",
            "payments",
            str(payments),
            "--from-date",
            "2024-01-01",
            "--to-date",
            "2024-01-31",
            "--scope",
            "all",
        ]
    )
    out = capsys.readouterr().out

    assert "Imported 2 payments row(s)." in out
    assert "=== KPIs & Ratios ===" in out
    assert "Gross revenue" in out
    assert "1250.0" in out
    assert "=== Payments by method ===" in out
    assert (tmp_path / "db.sqlite").exists()


def test_csv_output(tmp_path, capsys) -> None:
    config, payments = _setup(tmp_path)
    output = tmp_path / "out"

    main(
        [
            "--config",
            str(config),
            "--import",
            "payments",
            str(payments),
            "--scope",
            "reconciliation",
            "--display-mode",
            "csv",
            "--output",
            str(output),
        ]
    )

    names = sorted(p.name.rsplit("_", 1)[0] for p in output.glob("*.csv"))
    assert names == ["reconciliation_differences", "reconciliation_summary"]
    assert "===" not in capsys.readouterr().out


def test_unknown_import_kind_is_a_usage_error(tmp_path) -> None:
    config, payments = _setup(tmp_path)
    with pytest.raises(SystemExit):
        main(["--config", str(config), "--import", "invoices", str(payments)])


def test_missing_organization_is_a_usage_error(tmp_path) -> None:
    config = tmp_path / "salon_finsight_config.toml"
    config.write_text('[database]\npath = "db.sqlite"\n', encoding="utf-8")
    with pytest.raises(SystemExit):
        main(["--config", str(config)])
