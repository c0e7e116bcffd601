# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Salon FinSight.

This module wires together the main building blocks of Salon FinSight:

- global configuration (organization scope, database, analytics, display),
- entity CSV import & database access,
- snapshot provider with its query cache,
- dashboard pipeline (metrics, alerts, reconciliation, breakdowns),
- view helpers (tabular rendering and CSV export).

The CLI is thin: it does not implement any financial logic itself. It
orchestrates the underlying modules based on command-line arguments and
the configuration file.


High-level pipeline
-------------------

1) Load the main TOML configuration (salon_finsight_config.toml by
   default) using ``load_app_config()`` and configure logging.

2) Initialize the database and optionally import one or more entity CSV
   files (``--import KIND CSV_PATH``, repeatable).

3) Resolve the organization/location scope (CLI overrides config) and
   load the full snapshot of that scope from the database.

4) Determine the reporting window from ``--period`` or
   ``--from-date``/``--to-date`` (custom dates take precedence).

5) Compute the dashboard and render the requested ``--scope`` as console
   tables and/or CSV files depending on the display mode.


Scopes: what to render
----------------------

- ``kpis`` (default): KPIs, margins, occupancy, break-even, projection.
- ``alerts``: alerts that fired, in rule order.
- ``reconciliation``: gateway rows with a sold/settled difference, plus a
  per-gateway summary.
- ``breakdowns``: expenses per category, payments per method,
  commissions per employee, rent per location, daily income/expense
  series, recent movements.
- ``all``: everything above.


Periods
-------

``--period mtd | last-month | last-7 | last-30 | ytd | all``

``all`` (or no period at all) analyses the whole snapshot. When
``--from-date`` and/or ``--to-date`` are given, they take precedence; a
missing bound defaults to the other one.


Display modes and output
------------------------

``display.mode = "table" | "csv" | "both"`` in the configuration,
overridden by ``--display-mode``. CSV files are written to ``--output DIR``
(default ``data/output``) with a timestamp-based name, e.g.
``kpis_YYYY-MM-DD-HH-MM-SS.csv``.


Examples
--------

1) Import payments and expenses, then show month-to-date KPIs:

    python -m salon_finsight.cli \\
        --import payments exports/payments.csv \\
        --import expenses exports/expenses.csv \\
        --org org-1 --period mtd

2) Everything for last month, exported as CSV only:

    python -m salon_finsight.cli --scope all --period last-month \\
        --display-mode csv --output reports/last_month
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .cache import QueryCache
from .config import DISPLAY_MODES, LOG_LEVELS, AppConfig, load_app_config
from .dashboard import DashboardResult, compute_dashboard
from .db import has_records, import_records, init_database
from .io import read_entity_csv
from .models import ENTITY_KINDS
from .periods import determine_window_from_args
from .provider import SqliteSnapshotProvider, load_snapshot
from .views import (
    alerts_to_dataframe,
    differences_summary_to_dataframe,
    differences_to_dataframe,
    metrics_to_dataframe,
    round_amounts,
    write_csv,
)

PERIOD_CHOICES = ("mtd", "last-month", "last-7", "last-30", "ytd", "all")
SCOPE_CHOICES = ("kpis", "alerts", "reconciliation", "breakdowns", "all")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m salon_finsight.cli",
        description=(
            "Salon FinSight - Financial analytics & reconciliation engine for "
            "service businesses. Imports appointments, payments, expenses, "
            "commissions and gateway reconciliations, then renders KPIs, "
            "alerts, reconciliation differences and breakdowns."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of salon_finsight and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. If omitted, "
            "'salon_finsight_config.toml' in the current directory is used."
        ),
    )

    ap.add_argument(
        "--import",
        dest="imports",
        nargs=2,
        action="append",
        metavar=("KIND", "CSV_PATH"),
        help=(
            "Import records of KIND from the given CSV file into the database "
            f"before running the dashboard. KIND is one of: {', '.join(ENTITY_KINDS)}. "
            "Can be repeated."
        ),
    )

    # Scope of the data
    ap.add_argument(
        "--org",
        dest="org_id",
        help="Organization id to analyse (overrides organization.org_id).",
    )
    ap.add_argument(
        "--location",
        dest="location_id",
        help="Location id to analyse (overrides organization.location_id).",
    )

    # Period selection
    ap.add_argument(
        "--period",
        choices=PERIOD_CHOICES,
        help="Predefined reporting window. 'all' analyses every record.",
    )
    ap.add_argument(
        "--from-date",
        dest="from_date",
        help="Custom window start date (YYYY-MM-DD). Takes precedence over --period.",
    )
    ap.add_argument(
        "--to-date",
        dest="to_date",
        help="Custom window end date (YYYY-MM-DD). Takes precedence over --period.",
    )

    # Rendering
    ap.add_argument(
        "--scope",
        choices=SCOPE_CHOICES,
        default="kpis",
        help="Which dashboard sections to render (default: kpis).",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=DISPLAY_MODES,
        help="Override display.mode from the configuration.",
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Directory for CSV files (default: data/output).",
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=LOG_LEVELS,
        help="Override logging.level from the configuration.",
    )

    return ap


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_imports(
    parser: argparse.ArgumentParser,
    imports: list[list[str]],
    config: AppConfig,
    org_id: Optional[str],
) -> None:
    """Import each (kind, path) pair into the database, in the given order."""
    for kind, raw_path in imports:
        if kind not in ENTITY_KINDS:
            parser.error(
                f"Unknown entity kind for --import: {kind!r}. "
                f"Expected one of: {', '.join(ENTITY_KINDS)}."
            )
        csv_path = Path(raw_path)
        if not csv_path.is_file():
            parser.error(f"CSV file for --import not found: {csv_path}")

        print(f"Importing {kind} from {csv_path} into the database...")
        try:
            df_import = read_entity_csv(csv_path, kind)
        except ValueError as exc:
            parser.error(str(exc))
        stats = import_records(df_import, config.database, kind, org_id=org_id)
        print(
            f"Imported {stats.rows_imported} {kind} row(s)"
            + (
                f", skipped {stats.rows_skipped} without id."
                if stats.rows_skipped
                else "."
            )
        )


def _sections(
    result: DashboardResult, scope: str, decimals: int
) -> list[tuple[str, str, pd.DataFrame]]:
    """Return (file stem, title, DataFrame) for every section of the scope."""
    sections: list[tuple[str, str, pd.DataFrame]] = []

    if scope in {"kpis", "all"}:
        sections.append(
            (
                "kpis",
                "KPIs & Ratios",
                metrics_to_dataframe(result.metrics, decimals=decimals),
            )
        )

    if scope in {"alerts", "all"}:
        sections.append(("alerts", "Alerts", alerts_to_dataframe(result.alerts)))

    if scope in {"reconciliation", "all"}:
        sections.append(
            (
                "reconciliation_differences",
                "Gateway reconciliation differences",
                differences_to_dataframe(result.differences, decimals=decimals),
            )
        )
        sections.append(
            (
                "reconciliation_summary",
                "Differences per gateway",
                differences_summary_to_dataframe(result.differences, decimals=decimals),
            )
        )

    if scope in {"breakdowns", "all"}:
        b = result.breakdowns
        for stem, title, df in (
            ("expenses_by_category", "Expenses by category", b.expenses_by_category),
            ("payments_by_method", "Payments by method", b.payments_by_method),
            (
                "commissions_by_employee",
                "Commissions by employee",
                b.commissions_by_employee,
            ),
            ("rent_by_location", "Rent by location", b.rent_by_location),
            (
                "income_expense_series",
                "Daily income & expenses",
                b.income_expense_series,
            ),
            ("recent_movements", "Recent movements", b.recent_movements),
        ):
            sections.append((stem, title, round_amounts(df, decimals)))

    return sections


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the Salon FinSight CLI.

    Parses command-line arguments, loads the configuration, initializes the
    database, optionally imports entity CSV files, loads the snapshot of the
    selected organization/location, computes the dashboard for the selected
    window and renders the requested scope as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"salon_finsight version {__version__}")
        return

    # 1) Load application configuration
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    _configure_logging(args.log_level or config.log_level)

    org_id = args.org_id or config.organization.org_id
    location_id = args.location_id or config.organization.location_id

    # 2) Initialize the database (create file and schema if needed)
    init_database(config.database)

    if args.imports:
        _run_imports(parser, args.imports, config, org_id)
    elif not has_records(config.database):
        print("Warning: database is empty — use --import to load records.")

    if org_id is None:
        parser.error(
            "No organization selected. Either set organization.org_id in the "
            "configuration or provide --org."
        )

    # 3) Determine the reporting window.
    try:
        window = determine_window_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    # 4) Load the snapshot of the scope.
    provider = SqliteSnapshotProvider(
        config.database, cache=QueryCache(ttl_seconds=config.cache_ttl_seconds)
    )
    snapshot = load_snapshot(provider, org_id, location_id)

    scope_label = org_id if location_id is None else f"{org_id} / {location_id}"
    if window is None:
        print(f"Applied window: all records ({scope_label})")
    else:
        print(
            f"Applied window: {window.label} "
            f"({window.start} → {window.end}) ({scope_label})"
        )
    if snapshot.is_empty():
        print("Warning: no records were found in the database for this scope.")

    # 5) Compute the dashboard.
    result = compute_dashboard(snapshot, window, config.analytics)

    if args.scope in {"alerts", "all"} and not config.analytics.alerts_enabled:
        print(
            "Alerts have been requested in scope, but alerts are disabled in the "
            "configuration (alerts.enabled = false)."
        )

    sections = _sections(result, args.scope, config.decimals)

    # 6) Resolve display mode: config value overridden by CLI if provided.
    display_mode = args.display_mode or config.display_mode

    if display_mode in {"table", "both"}:
        for _, title, df in sections:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(nothing to show)")
            else:
                print(df.to_string(index=False))

        if args.scope in {"breakdowns", "all"}:
            b = result.breakdowns
            print()
            d = config.decimals
            print(
                f"Rent: {b.rent_expenses:.{d}f} | "
                f"Salaries: {b.salary_expenses:.{d}f} | "
                f"Net result: {b.net_result:.{d}f} {config.organization.currency}"
            )

    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")

        for stem, _, df in sections:
            path = output_dir / f"{stem}_{timestamp}.csv"
            write_csv(df, path)
            print(f"Wrote {path} ({len(df)} rows)")


if __name__ == "__main__":
    main()
