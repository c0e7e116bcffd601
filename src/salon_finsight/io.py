# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Salon FinSight.

This module reads entity exports (CSV files) and normalizes their columns
into a consistent structure suitable for the storage layer.

Expected input formats
----------------------

One CSV file per entity kind. Column names may be snake_case or camelCase
(``paymentMethod`` and ``payment_method`` are equivalent); camelCase
names are converted to snake_case on read. The minimal column sets are:

    appointments             id, status, starts_at | date
    payments                 id, amount, date
    expenses                 id, amount, incurred_at
    commissions              id, amount, date
    gateway_reconciliations  id, sold_amount, settled_amount, transaction_date

Any other column recognized by the normalization adapter (see
``adapters.py``) is used; unknown columns are ignored.

All cells are read as text. Numeric and date parsing is left to the
adapter, which maps unparseable amounts to 0 and unparseable dates to
"no date" instead of failing the whole import.
"""

import os
import re
from typing import Union

import pandas as pd

from .models import ENTITY_KINDS

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")

REQUIRED_COLUMNS: dict[str, tuple[frozenset[str], ...]] = {
    # Each tuple item is a set of alternatives; one of them must be present.
    "appointments": (
        frozenset({"id"}),
        frozenset({"status"}),
        frozenset({"starts_at", "date"}),
    ),
    "payments": (frozenset({"id"}), frozenset({"amount"}), frozenset({"date"})),
    "expenses": (frozenset({"id"}), frozenset({"amount"}), frozenset({"incurred_at"})),
    "commissions": (frozenset({"id"}), frozenset({"amount"}), frozenset({"date"})),
    "gateway_reconciliations": (
        frozenset({"id"}),
        frozenset({"sold_amount"}),
        frozenset({"settled_amount"}),
        frozenset({"transaction_date"}),
    ),
}


def to_snake_case(name: str) -> str:
    """Convert a column name such as 'paymentMethod' to 'payment_method'."""
    return _CAMEL_RE.sub(r"_\1", name.strip()).lower()


def read_entity_csv(path: Union[str, "os.PathLike[str]"], kind: str) -> pd.DataFrame:
    """
    Read one entity export and normalize its column names.

    Parameters
    ----------
    path:
        Path to the CSV file.
    kind:
        Entity kind of the file, one of ``models.ENTITY_KINDS``.

    Returns
    -------
    pandas.DataFrame
        All columns as text (empty cells as None), snake_case names.

    Raises
    ------
    ValueError
        If ``kind`` is unknown or a required column is missing.
    """
    if kind not in ENTITY_KINDS:
        raise ValueError(
            f"Unknown entity kind {kind!r}. Expected one of: {', '.join(ENTITY_KINDS)}."
        )

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [to_snake_case(c) for c in df.columns]
    cols = set(df.columns)

    missing = [
        " | ".join(sorted(alternatives))
        for alternatives in REQUIRED_COLUMNS[kind]
        if not alternatives & cols
    ]
    if missing:
        raise ValueError(
            f"Invalid {kind} structure in {path}. Missing column(s): "
            + ", ".join(missing)
            + " (column names are case-insensitive; camelCase is accepted)."
        )

    # Empty cells -> None so the adapter treats them as missing values.
    return df.replace({"": None})
