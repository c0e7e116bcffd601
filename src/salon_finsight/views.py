# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Salon FinSight.

This module contains helpers that transform engine outputs (KPIs, the
financial metrics bundle, alerts, reconciliation differences) into pandas
DataFrames ready for console display or CSV export.

Rounding to currency precision happens here and only here: the engine
always works on unrounded floats.
"""

import os
from typing import Union

import pandas as pd

from .alerts import Alert
from .engine import KPI_METADATA, FinancialMetrics, KPIs
from .reconciliation import ReconciliationDifference, summarize_differences

MEASURE_COLUMNS = ["section", "key", "label", "value", "unit"]

_PERCENT_KEYS = {"gross_margin_percent", "net_margin_percent", "rate", "occupancy_rate"}
_COUNT_KEYS = {"hours_sold", "hours_available"}


def _label_for(key: str) -> str:
    meta = KPI_METADATA.get(key)
    if meta is not None:
        return meta.label
    return key.replace("_", " ").capitalize()


def _unit_for(key: str) -> str:
    meta = KPI_METADATA.get(key)
    if meta is not None:
        return meta.unit
    if key in _PERCENT_KEYS:
        return "percent"
    if key in _COUNT_KEYS:
        return "count"
    return "amount"


def kpis_to_dataframe(kpis: KPIs, decimals: int = 2) -> pd.DataFrame:
    """
    Convert a KPIs object into a DataFrame with one row per KPI.

    Columns: key, label, value, unit, notes. Values are rounded to
    ``decimals`` places; rows follow the KPI declaration order.
    """
    rows: list[dict[str, object]] = []
    for key, value in kpis.as_dict().items():
        meta = KPI_METADATA.get(key)
        rows.append(
            {
                "key": key,
                "label": _label_for(key),
                "value": round(float(value), decimals),
                "unit": _unit_for(key),
                "notes": meta.notes if meta is not None else "",
            }
        )
    return pd.DataFrame(rows, columns=["key", "label", "value", "unit", "notes"])


def metrics_to_dataframe(metrics: FinancialMetrics, decimals: int = 2) -> pd.DataFrame:
    """
    Flatten the whole metrics bundle (kpis, margins, occupancy, break_even,
    projection) into a long-format DataFrame with a ``section`` column.
    """
    rows: list[dict[str, object]] = []
    for section, values in metrics.as_dict().items():
        for key, value in values.items():
            rows.append(
                {
                    "section": section,
                    "key": key,
                    "label": _label_for(key),
                    "value": round(float(value), decimals),
                    "unit": _unit_for(key),
                }
            )
    return pd.DataFrame(rows, columns=MEASURE_COLUMNS)


def alerts_to_dataframe(alerts: list[Alert]) -> pd.DataFrame:
    """Convert alerts to a DataFrame, keeping rule order."""
    columns = ["id", "type", "severity", "title", "message", "suggested_action"]
    if not alerts:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([a.as_dict() for a in alerts], columns=columns)


def differences_to_dataframe(
    differences: list[ReconciliationDifference], decimals: int = 2
) -> pd.DataFrame:
    """Convert reconciliation differences to a DataFrame, keeping input order."""
    columns = [
        "id",
        "gateway_name",
        "transaction_date",
        "sold_amount",
        "settled_amount",
        "delta",
    ]
    if not differences:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([d.as_dict() for d in differences], columns=columns)
    for col in ("sold_amount", "settled_amount", "delta"):
        df[col] = df[col].round(decimals)
    return df


def differences_summary_to_dataframe(
    differences: list[ReconciliationDifference], decimals: int = 2
) -> pd.DataFrame:
    """Per-gateway count and total delta of the flagged differences."""
    rows = [
        {
            "gateway_name": s.gateway_name,
            "count": s.count,
            "total_delta": round(s.total_delta, decimals),
        }
        for s in summarize_differences(differences)
    ]
    return pd.DataFrame(rows, columns=["gateway_name", "count", "total_delta"])


def round_amounts(df: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    """Round every float column of a breakdown DataFrame."""
    out = df.copy()
    for col in out.columns:
        if pd.api.types.is_float_dtype(out[col]):
            out[col] = out[col].round(decimals)
    return out


def write_csv(df: pd.DataFrame, path: Union[str, "os.PathLike[str]"]) -> None:
    """Write a view to CSV without the pandas index."""
    df.to_csv(path, index=False)
