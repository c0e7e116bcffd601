# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for Salon FinSight.

This module stores the records read by the reference Entity Snapshot
Provider in a local SQLite file. It is responsible for:

- Initializing the database schema (one table per entity kind).
- Importing records in bulk from a pandas DataFrame (CSV imports).
- Loading records for one organization, with the scope filters each
  entity kind supports (location, expense filters, transaction window).

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

Every table has a TEXT primary key ``id`` and a TEXT ``org_id``.

- Monetary fields are stored as signed integer cents (``*_cents``) and
  converted back to floats when loading.
- Dates are stored as ISO "YYYY-MM-DD" text, already normalized by the
  adapter layer; NULL means "no valid date".

Tables:

1) appointments
   id, org_id, location_id, service_id, stylist_id, client_id,
   starts_at, date, status, total_amount_cents

2) payments
   id, org_id, appointment_id, amount_cents, payment_method, date,
   discount_amount_cents, tax_amount_cents, tip_amount_cents,
   gateway_fee_cents, gateway_settlement_date,
   gateway_settlement_amount_cents

3) expenses
   id, org_id, location_id, amount_cents, description, category, type,
   payment_status, incurred_at

4) commissions
   id, org_id, employee_id, appointment_id, amount_cents,
   commission_rate (REAL), date

5) gateway_reconciliations
   id, org_id, gateway_name, transaction_date, sold_amount_cents,
   settled_amount_cents, credited_amount_cents, commission_amount_cents,
   difference_cents, settlement_date

Imports are idempotent: a row whose id already exists replaces the stored
row (the source system owns the records; the database mirrors it).

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- Scoped loads are ordered by the canonical date then id, so snapshots
  built from the database are deterministic.
- The database file is portable across platforms.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import pandas as pd

from .adapters import ROW_BUILDERS
from .models import (
    ENTITY_KINDS,
    Appointment,
    Commission,
    Expense,
    GatewayReconciliation,
    Payment,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Salon FinSight.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class ImportStats:
    """
    Summary of an import of records into the database.

    Attributes
    ----------
    kind:
        Entity kind that was imported (e.g. "payments").
    rows_imported:
        Number of rows inserted or replaced.
    rows_skipped:
        Number of rows ignored because they had no id.
    """

    kind: str
    rows_imported: int
    rows_skipped: int


@dataclass(frozen=True)
class ExpenseFilters:
    """
    Optional filters for expense loads. All filters are combined.

    Attributes
    ----------
    location_id:
        Keep expenses of this location and organization-wide expenses
        (no location).
    category:
        Exact category match (case-insensitive).
    type:
        Expense type ("fixed", "variable", "supply_purchase").
    payment_status:
        Payment status ("pending", "paid", "partial").
    """

    location_id: str | None = None
    category: str | None = None
    type: str | None = None
    payment_status: str | None = None


_RECORD_TYPES: dict[str, type] = {
    "appointments": Appointment,
    "payments": Payment,
    "expenses": Expense,
    "commissions": Commission,
    "gateway_reconciliations": GatewayReconciliation,
}

# Fields stored as integer cents, per kind.
_CENTS_FIELDS: dict[str, frozenset[str]] = {
    "appointments": frozenset({"total_amount"}),
    "payments": frozenset(
        {
            "amount",
            "discount_amount",
            "tax_amount",
            "tip_amount",
            "gateway_fee",
            "gateway_settlement_amount",
        }
    ),
    "expenses": frozenset({"amount"}),
    "commissions": frozenset({"amount"}),
    "gateway_reconciliations": frozenset(
        {
            "sold_amount",
            "settled_amount",
            "credited_amount",
            "commission_amount",
            "difference",
        }
    ),
}

_REAL_FIELDS = frozenset({"commission_rate"})

# Canonical date column per kind (used for ordering and windows).
_DATE_COLUMNS: dict[str, str] = {
    "appointments": "date",
    "payments": "date",
    "expenses": "incurred_at",
    "commissions": "date",
    "gateway_reconciliations": "transaction_date",
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _ensure_kind(kind: str) -> None:
    if kind not in ENTITY_KINDS:
        raise ValueError(
            f"Unknown entity kind {kind!r}. Expected one of: {', '.join(ENTITY_KINDS)}."
        )


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """Open a connection to the configured SQLite database."""
    _ensure_sqlite(cfg)
    return sqlite3.connect(cfg.path)


def _column_name(kind: str, field_name: str) -> str:
    if field_name in _CENTS_FIELDS[kind]:
        return f"{field_name}_cents"
    return field_name


def _column_type(kind: str, field_name: str) -> str:
    if field_name == "id":
        return "TEXT PRIMARY KEY"
    if field_name in _CENTS_FIELDS[kind]:
        return "INTEGER"
    if field_name in _REAL_FIELDS:
        return "REAL"
    return "TEXT"


def _field_names(kind: str) -> list[str]:
    return [f.name for f in fields(_RECORD_TYPES[kind])]


def _to_cents(value: float | None) -> int | None:
    if value is None:
        return None
    return int(round(value * 100))


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """Create every entity table and its date index if missing."""
    for kind in ENTITY_KINDS:
        columns = ",\n    ".join(
            f"{_column_name(kind, name)} {_column_type(kind, name)}"
            for name in _field_names(kind)
        )
        conn.execute(f"CREATE TABLE IF NOT EXISTS {kind} (\n    {columns}\n);")
        conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{kind}_org_date "
            f"ON {kind} (org_id, {_DATE_COLUMNS[kind]});"
        )
    conn.commit()


def _record_to_params(kind: str, record: Any) -> list[Any]:
    params: list[Any] = []
    for name, value in asdict(record).items():
        if name in _CENTS_FIELDS[kind]:
            params.append(_to_cents(value))
        else:
            params.append(value)
    return params


def _row_to_mapping(kind: str, columns: list[str], row: tuple) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for column, value in zip(columns, row):
        if column.endswith("_cents"):
            data[column[: -len("_cents")]] = None if value is None else value / 100.0
        else:
            data[column] = value
    return data


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates the entity tables and indexes if they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    _ensure_sqlite(cfg)
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def import_records(
    df: pd.DataFrame,
    cfg: DatabaseConfig,
    kind: str,
    *,
    org_id: str | None = None,
) -> ImportStats:
    """
    Import a batch of records of one kind into the database.

    Parameters
    ----------
    df:
        Raw rows (camelCase or snake_case columns). Each row goes through the
        normalization adapter before being stored.
    cfg:
        Database configuration.
    kind:
        Entity kind, one of ``models.ENTITY_KINDS``.
    org_id:
        Organization assigned to rows that do not carry an ``org_id``.

    Returns
    -------
    ImportStats

    Raises
    ------
    ValueError
        If ``kind`` is unknown.
    sqlite3.Error
        If database operations fail.
    """
    _ensure_kind(kind)
    init_database(cfg)

    builder = ROW_BUILDERS[kind]
    names = _field_names(kind)
    columns = ", ".join(_column_name(kind, n) for n in names)
    placeholders = ", ".join("?" for _ in names)

    imported = 0
    skipped = 0

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        for raw in df.to_dict(orient="records"):
            if org_id is not None and all(
                pd.isna(raw.get(key)) for key in ("org_id", "orgId")
            ):
                raw["org_id"] = org_id
            record = builder(raw)
            if not record.id:
                skipped += 1
                continue
            cur.execute(
                f"INSERT OR REPLACE INTO {kind} ({columns}) VALUES ({placeholders});",
                _record_to_params(kind, record),
            )
            imported += 1
        conn.commit()
    finally:
        conn.close()

    if skipped:
        logger.warning("Skipped %d %s row(s) without id", skipped, kind)
    logger.info("Imported %d %s row(s) into %s", imported, kind, cfg.path)

    return ImportStats(kind=kind, rows_imported=imported, rows_skipped=skipped)


def load_records(
    cfg: DatabaseConfig,
    kind: str,
    org_id: str | None,
    *,
    location_id: str | None = None,
    expense_filters: ExpenseFilters | None = None,
    start: str | None = None,
    end: str | None = None,
) -> list[Any]:
    """
    Load the canonical records of one kind for an organization.

    Parameters
    ----------
    cfg:
        Database configuration.
    kind:
        Entity kind, one of ``models.ENTITY_KINDS``.
    org_id:
        Organization scope. None loads every organization.
    location_id:
        For appointments: keep only this location.
    expense_filters:
        For expenses: optional ExpenseFilters.
    start, end:
        Optional inclusive ISO bounds on the canonical date column.

    Returns
    -------
    list
        Canonical records (see models.py), ordered by date then id.
    """
    _ensure_kind(kind)
    init_database(cfg)

    clauses: list[str] = []
    params: list[Any] = []

    if org_id is not None:
        clauses.append("org_id = ?")
        params.append(org_id)

    if location_id is not None and kind == "appointments":
        clauses.append("location_id = ?")
        params.append(location_id)

    if expense_filters is not None and kind == "expenses":
        if expense_filters.location_id is not None:
            clauses.append("(location_id = ? OR location_id IS NULL)")
            params.append(expense_filters.location_id)
        if expense_filters.category is not None:
            clauses.append("LOWER(category) = LOWER(?)")
            params.append(expense_filters.category)
        if expense_filters.type is not None:
            clauses.append("type = ?")
            params.append(expense_filters.type)
        if expense_filters.payment_status is not None:
            clauses.append("payment_status = ?")
            params.append(expense_filters.payment_status)

    date_column = _DATE_COLUMNS[kind]
    if start is not None:
        clauses.append(f"{date_column} >= ?")
        params.append(start)
    if end is not None:
        clauses.append(f"{date_column} <= ?")
        params.append(end)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    columns = [_column_name(kind, n) for n in _field_names(kind)]

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT {', '.join(columns)} FROM {kind} {where} "
            f"ORDER BY {date_column}, id;",
            params,
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    builder = ROW_BUILDERS[kind]
    return [builder(_row_to_mapping(kind, columns, row)) for row in rows]


def count_records(cfg: DatabaseConfig, kind: str, org_id: str | None = None) -> int:
    """Return the number of stored records of one kind (optionally for one org)."""
    _ensure_kind(kind)
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        if org_id is None:
            cur.execute(f"SELECT COUNT(*) FROM {kind};")
        else:
            cur.execute(f"SELECT COUNT(*) FROM {kind} WHERE org_id = ?;", (org_id,))
        (count,) = cur.fetchone()
    finally:
        conn.close()
    return int(count)


def has_records(cfg: DatabaseConfig) -> bool:
    """Return True if the database contains at least one record of any kind."""
    return any(count_records(cfg, kind) > 0 for kind in ENTITY_KINDS)
