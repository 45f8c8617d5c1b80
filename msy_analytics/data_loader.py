"""
Utilities for turning tidy Mai Shun Yun tables into analytics records.

Spreadsheet sniffing happens upstream; these helpers only accept frames (or
CSV files) whose columns are already named, coerce the numbers, and build the
record types the engine consumes. Blank or unparseable numbers become zero.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from .models import RecipeItem, SalesRecord, ShipmentSchedule

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_SALES_LABEL_COLUMNS = ("label", "category", "group", "item_name", "item")
_SHIPMENT_RENAMES = {
    "ingredient_name": "ingredient",
    "unit_of_shipment": "unit",
    "number_of_shipments": "shipments",
    "shipment_count": "shipments",
}


def _clean_currency(series: pd.Series) -> pd.Series:
    """Convert a dollar-formatted string column into floats."""
    return pd.to_numeric(
        series.astype(str).str.replace(r"[^0-9.\-]", "", regex=True),
        errors="coerce",
    ).fillna(0.0)


def _clean_count(series: pd.Series) -> pd.Series:
    """Ensure counts are numeric even when commas are present."""
    return pd.to_numeric(
        series.astype(str).str.replace(",", "", regex=False), errors="coerce"
    ).fillna(0.0)


def _normalise_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of *df* with snake_case column names."""
    df = df.copy()
    df.columns = [
        str(col).strip().lower().replace(" ", "_").replace("/", "_") for col in df.columns
    ]
    return df


def sales_records_from_frame(
    df: pd.DataFrame, period: Optional[str] = None
) -> List[SalesRecord]:
    """
    Build sales records from a frame of period/label/count/amount rows.

    The label may be called ``label``, ``category``, ``group`` or ``item_name``.
    *period* fills in frames that hold a single month without a period column.
    """
    df = _normalise_columns(df)
    label_col = next((c for c in _SALES_LABEL_COLUMNS if c in df.columns), None)
    if label_col is None:
        raise ValueError(f"No sales label column among: {', '.join(df.columns)}")
    if "period" not in df.columns:
        if period is None:
            raise ValueError("Sales frame has no period column and no period was given")
        df["period"] = period

    counts = _clean_count(df["count"]) if "count" in df.columns else 0.0
    amounts = _clean_currency(df["amount"]) if "amount" in df.columns else 0.0
    df = df.assign(count=counts, amount=amounts)
    df = df[df[label_col].notna()]
    return [
        SalesRecord(
            period=str(row["period"]).strip(),
            label=str(row[label_col]).strip(),
            count=float(row["count"]),
            amount=float(row["amount"]),
        )
        for _, row in df.iterrows()
    ]


def recipe_items_from_frame(df: pd.DataFrame) -> List[RecipeItem]:
    """
    Build recipe items from the wide ingredient sheet.

    Ingredient column names are kept verbatim since their unit suffixes
    ("(g)", "(count)", "(pcs)") drive unit handling downstream.
    """
    df = df.rename(columns={"Item name": "item_name", "Item Name": "item_name"})
    if "item_name" not in df.columns:
        raise ValueError("Recipe frame needs an 'Item name' column")
    df = df[df["item_name"].notna()]
    ingredient_cols = [c for c in df.columns if c != "item_name"]

    items = []
    for _, row in df.iterrows():
        quantities = {
            str(col).strip(): float(qty)
            for col, qty in zip(
                ingredient_cols,
                pd.to_numeric(row[ingredient_cols], errors="coerce").fillna(0.0),
            )
            if qty > 0
        }
        items.append(RecipeItem(str(row["item_name"]).strip(), quantities))
    return items


def shipments_from_frame(df: pd.DataFrame) -> List[ShipmentSchedule]:
    """
    Build shipment schedules.

    Expects columns: ingredient, quantity_per_shipment, unit, shipments, frequency
    (raw headers such as "Unit of shipment" are accepted too).
    """
    df = _normalise_columns(df).rename(columns=_SHIPMENT_RENAMES)
    missing = {"ingredient", "quantity_per_shipment", "shipments"} - set(df.columns)
    if missing:
        raise ValueError(f"Shipment frame is missing columns: {', '.join(sorted(missing))}")
    df = df[df["ingredient"].notna()]

    quantities = _clean_count(df["quantity_per_shipment"])
    counts = _clean_count(df["shipments"]).astype(int)
    units = df["unit"].fillna("") if "unit" in df.columns else pd.Series("", index=df.index)
    frequencies = (
        df["frequency"].fillna("") if "frequency" in df.columns else pd.Series("", index=df.index)
    )
    return [
        ShipmentSchedule(
            ingredient_name=str(name).strip(),
            quantity_per_shipment=float(qty),
            unit=str(unit).strip(),
            shipment_count=int(count),
            frequency=str(freq).strip(),
        )
        for name, qty, unit, count, freq in zip(
            df["ingredient"], quantities, units, counts, frequencies
        )
    ]


def _read_csv(path: PathLike) -> pd.DataFrame:
    path = Path(path)
    logger.info("Reading %s", path)
    return pd.read_csv(path)


def load_sales_csv(path: PathLike, period: Optional[str] = None) -> List[SalesRecord]:
    return sales_records_from_frame(_read_csv(path), period=period)


def load_recipe_csv(path: PathLike) -> List[RecipeItem]:
    return recipe_items_from_frame(_read_csv(path))


def load_shipments_csv(path: PathLike) -> List[ShipmentSchedule]:
    return shipments_from_frame(_read_csv(path))
