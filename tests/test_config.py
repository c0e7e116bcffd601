from pathlib import Path

import pytest

from salon_finsight.config import load_app_config
from salon_finsight.ratios import DEFAULT_FIXED_COST_CATEGORIES


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "salon_finsight_config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_empty_config_uses_defaults(tmp_path) -> None:
    """Every section is optional."""
    cfg = load_app_config(str(_write(tmp_path, "")))

    assert cfg.organization.org_id is None
    assert cfg.organization.currency == "ARS"
    assert cfg.database.engine == "sqlite"
    assert cfg.database.path == (tmp_path / "data/db/salon_finsight.sqlite").resolve()
    assert cfg.analytics.fixed_cost_categories == DEFAULT_FIXED_COST_CATEGORIES
    assert cfg.analytics.fixed_cost_divisor_days == 30
    assert cfg.analytics.default_window_days == 30
    assert cfg.analytics.reconciliation_tolerance == pytest.approx(0.01)
    assert cfg.analytics.alerts_enabled is True
    assert cfg.analytics.alert_thresholds.no_show_pct == 15
    assert cfg.display_mode == "table"
    assert cfg.decimals == 2
    assert cfg.cache_ttl_seconds == 5
    assert cfg.log_level == "WARNING"


def test_full_config(tmp_path) -> None:
    content = """
[organization]
org_id = "org-1"
location_id = "loc-1"
currency = "EUR"

[database]
path = "store/app.sqlite"

[analytics]
fixed_cost_categories = ["Rent", "Loyer"]
default_window_days = 7
reconciliation_tolerance = 0.5

[alerts]
enabled = false
no_show_pct = 25
low_margin_pct = 5

[display]
mode = "both"
decimals = 0

[cache]
ttl_seconds = 0

[logging]
level = "debug"
"""
    cfg = load_app_config(str(_write(tmp_path, content)))

    assert cfg.organization.org_id == "org-1"
    assert cfg.organization.location_id == "loc-1"
    assert cfg.database.path == (tmp_path / "store/app.sqlite").resolve()
    assert cfg.analytics.fixed_cost_categories == ("rent", "loyer")
    assert cfg.analytics.default_window_days == 7
    assert cfg.analytics.alerts_enabled is False
    thresholds = cfg.analytics.alert_thresholds
    assert thresholds.no_show_pct == 25
    assert thresholds.revenue_drop_pct == 20
    assert thresholds.low_margin_pct == 5
    assert cfg.analytics.reconciliation_tolerance == pytest.approx(0.5)
    assert cfg.display_mode == "both"
    assert cfg.decimals == 0
    assert cfg.cache_ttl_seconds == 0
    assert cfg.log_level == "DEBUG"


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


@pytest.mark.parametrize(
    "content",
    [
        "[display]\nmode = 'html'\n",
        "[alerts]\nno_show_pct = 'high'\n",
        "[alerts]\nno_show_pct = -1\n",
        "[analytics]\nfixed_cost_categories = 'rent'\n",
        "[analytics]\nfixed_cost_divisor_days = 0\n",
        "[logging]\nlevel = 'verbose'\n",
        "[display\n",
    ],
)
def test_invalid_values_raise(tmp_path, content) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(_write(tmp_path, content)))
