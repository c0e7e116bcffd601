# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Salon FinSight.

This module is responsible for:
- loading the main application configuration from a TOML file,
- validating each section and applying defaults,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .alerts import AlertThresholds
from .cache import DEFAULT_TTL_SECONDS
from .db import DatabaseConfig
from .periods import DEFAULT_WINDOW_DAYS
from .ratios import DEFAULT_FIXED_COST_CATEGORIES, FIXED_COST_DIVISOR_DAYS
from .reconciliation import DEFAULT_TOLERANCE

DEFAULT_CONFIG_FILE = "salon_finsight_config.toml"

DISPLAY_MODES = ("table", "csv", "both")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class OrganizationConfig:
    """Default scope of the computations."""

    org_id: Optional[str]
    location_id: Optional[str]
    currency: str


@dataclass(frozen=True)
class AnalyticsSettings:
    """
    Settings of the computation pipeline.

    The defaults reproduce the documented business rules: rent and salary
    categories are fixed costs, normalized over 30 days, and gateway rows
    differing by more than one cent are flagged.
    """

    fixed_cost_categories: tuple[str, ...] = DEFAULT_FIXED_COST_CATEGORIES
    fixed_cost_divisor_days: int = FIXED_COST_DIVISOR_DAYS
    default_window_days: int = DEFAULT_WINDOW_DAYS
    reconciliation_tolerance: float = DEFAULT_TOLERANCE
    alerts_enabled: bool = True
    alert_thresholds: AlertThresholds = field(default_factory=AlertThresholds)


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Salon FinSight.

    This aggregates:
    - the default organization/location scope and currency,
    - the database configuration (where snapshot records are stored),
    - analytics settings (fixed-cost rules, tolerance, alert thresholds),
    - display options for tables and CSV exports,
    - the query cache TTL and the logging level.
    """

    organization: OrganizationConfig
    database: DatabaseConfig
    analytics: AnalyticsSettings
    display_mode: str
    decimals: int
    cache_ttl_seconds: float
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Config section [{name}] must be a table.")
    return value


def _float_option(
    section: Mapping[str, Any], key: str, default: float, where: str
) -> float:
    value = section.get(key, default)
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected a number."
        ) from exc
    if result < 0:
        raise ValueError(f"'{where}.{key}' cannot be negative.")
    return result


def _int_option(section: Mapping[str, Any], key: str, default: int, where: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"Invalid value for '{where}.{key}'. Expected an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected an integer."
        ) from exc


def _optional_str(section: Mapping[str, Any], key: str) -> Optional[str]:
    value = section.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _parse_analytics(raw: Mapping[str, Any]) -> AnalyticsSettings:
    analytics_section = _section(raw, "analytics")
    alerts_section = _section(raw, "alerts")

    categories_raw = analytics_section.get(
        "fixed_cost_categories", list(DEFAULT_FIXED_COST_CATEGORIES)
    )
    if not isinstance(categories_raw, list) or not all(
        isinstance(c, str) for c in categories_raw
    ):
        raise ValueError("'analytics.fixed_cost_categories' must be a list of strings.")

    divisor = _int_option(
        analytics_section,
        "fixed_cost_divisor_days",
        FIXED_COST_DIVISOR_DAYS,
        "analytics",
    )
    if divisor < 1:
        raise ValueError("'analytics.fixed_cost_divisor_days' must be at least 1.")

    default_days = _int_option(
        analytics_section, "default_window_days", DEFAULT_WINDOW_DAYS, "analytics"
    )
    if default_days < 1:
        raise ValueError("'analytics.default_window_days' must be at least 1.")

    tolerance = _float_option(
        analytics_section, "reconciliation_tolerance", DEFAULT_TOLERANCE, "analytics"
    )

    defaults = AlertThresholds()
    thresholds = AlertThresholds(
        no_show_pct=_float_option(
            alerts_section, "no_show_pct", defaults.no_show_pct, "alerts"
        ),
        revenue_drop_pct=_float_option(
            alerts_section, "revenue_drop_pct", defaults.revenue_drop_pct, "alerts"
        ),
        low_margin_pct=_float_option(
            alerts_section, "low_margin_pct", defaults.low_margin_pct, "alerts"
        ),
    )

    return AnalyticsSettings(
        fixed_cost_categories=tuple(c.strip().lower() for c in categories_raw),
        fixed_cost_divisor_days=divisor,
        default_window_days=default_days,
        reconciliation_tolerance=tolerance,
        alerts_enabled=bool(alerts_section.get("enabled", True)),
        alert_thresholds=thresholds,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Salon FinSight application configuration from a TOML file.

    Expected top-level sections in the TOML file (all optional)
    -----------------------------------------------------------
    [organization]
        org_id, location_id and presentation currency.

    [database]
        Database engine ("sqlite") and file path.

    [analytics]
        fixed_cost_categories, fixed_cost_divisor_days,
        default_window_days, reconciliation_tolerance.

    [alerts]
        enabled, no_show_pct, revenue_drop_pct, low_margin_pct.

    [display]
        mode ("table" | "csv" | "both") and decimals.

    [cache]
        ttl_seconds for the snapshot query cache.

    [logging]
        level ("DEBUG" ... "CRITICAL").

    All file paths in the TOML are resolved relative to the directory of
    the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        ``salon_finsight_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    config_file = Path(config_path or DEFAULT_CONFIG_FILE).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Organization scope
    org_section = _section(raw, "organization")
    organization = OrganizationConfig(
        org_id=_optional_str(org_section, "org_id"),
        location_id=_optional_str(org_section, "location_id"),
        currency=str(org_section.get("currency") or "ARS"),
    )

    # 2) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/salon_finsight.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()
    database = DatabaseConfig(engine=db_engine, path=db_path)

    # 3) Analytics and alerts
    analytics = _parse_analytics(raw)

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display mode {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    decimals = _int_option(display_section, "decimals", 2, "display")

    # 5) Cache and logging
    cache_ttl = _float_option(
        _section(raw, "cache"), "ttl_seconds", DEFAULT_TTL_SECONDS, "cache"
    )

    log_level = str(_section(raw, "logging").get("level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid logging level {log_level!r}. "
            f"Expected one of: {', '.join(LOG_LEVELS)}."
        )

    return AppConfig(
        organization=organization,
        database=database,
        analytics=analytics,
        display_mode=display_mode,
        decimals=decimals,
        cache_ttl_seconds=cache_ttl,
        log_level=log_level,
    )
