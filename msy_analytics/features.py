"""
Feature engineering helpers for the Mai Shun Yun inventory engine.

These functions turn sales records and the recipe book into ingredient
consumption per period, the artifact every downstream view is built from.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .models import (
    IngredientUsage,
    MonthlyIngredientUsage,
    RecipeItem,
    SalesRecord,
    infer_unit,
    period_index,
)

logger = logging.getLogger(__name__)

# item_key is the position in the recipe book, so repeated item names stay distinct.
MIX_COLUMNS = ["period", "item_key", "item_name", "estimated_count"]
BOOK_COLUMNS = ["item_key", "item_name", "ingredient", "quantity_per_unit"]
MIX_DTYPES = {"item_key": "int64", "estimated_count": "float64"}
SALES_COLUMNS = ["period", "label", "count", "amount"]


class Granularity(str, Enum):
    """Whether a sales label names a menu item or a POS category."""

    ITEM = "item"
    CATEGORY = "category"


def _normalise_name(name: str) -> str:
    return " ".join(str(name).strip().lower().split())


def is_excluded_category(label: str, config: AnalyticsConfig = DEFAULT_CONFIG) -> bool:
    """True for non-food lines (gift cards, drinks, desserts, combos...)."""
    lowered = _normalise_name(label)
    return any(keyword in lowered for keyword in config.excluded_category_keywords)


def _lookup_category(label: str, config: AnalyticsConfig) -> Optional[str]:
    lowered = _normalise_name(label)
    keys = {_normalise_name(key): key for key in config.category_items}
    if lowered in keys:
        return keys[lowered]
    # The most specific table entry wins: "Tossed Ramen" before "Ramen".
    contained = [key for key in keys if key and key in lowered]
    if not contained:
        return None
    return keys[max(contained, key=len)]


def _category_positions(
    category: str, recipe_items: Sequence[RecipeItem], config: AnalyticsConfig
) -> List[int]:
    names = [_normalise_name(item.item_name) for item in recipe_items]
    key = _lookup_category(category, config)
    if key is not None:
        wanted = {_normalise_name(name) for name in config.category_items[key]}
        return [pos for pos, name in enumerate(names) if name in wanted]

    lowered = _normalise_name(category)
    rules = [
        (include, exclude)
        for keyword, include, exclude in config.category_keyword_rules
        if keyword in lowered
    ]
    return [
        pos
        for pos, name in enumerate(names)
        if any(
            any(word in name for word in include) and not any(word in name for word in exclude)
            for include, exclude in rules
        )
    ]


def items_for_category(
    category: str,
    recipe_items: Sequence[RecipeItem],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> List[RecipeItem]:
    """
    Map a POS category label onto the recipe items that contribute to it.

    The configured table is consulted first; otherwise keyword rules apply.
    An empty list means the category contributes no usage.
    """
    return [recipe_items[pos] for pos in _category_positions(category, recipe_items, config)]


def split_count(count: float, parts: int) -> List[float]:
    """
    Split *count* evenly into *parts* shares that add back up to *count*.

    The final share absorbs floating-point remainder.
    """
    if parts <= 0:
        return []
    share = count / parts
    shares = [share] * (parts - 1)
    shares.append(count - share * (parts - 1))
    return shares


def _sales_item_positions(
    label: str, recipe_items: Sequence[RecipeItem], config: AnalyticsConfig
) -> List[int]:
    names = [_normalise_name(item.item_name) for item in recipe_items]
    wanted = _normalise_name(label)
    if wanted not in names:
        aliases = {_normalise_name(k): v for k, v in config.item_aliases.items()}
        target = aliases.get(wanted)
        if target is None:
            return []
        wanted = _normalise_name(target)
    return [pos for pos, name in enumerate(names) if name == wanted]


def match_sales_item(
    label: str,
    recipe_items: Sequence[RecipeItem],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> Optional[RecipeItem]:
    """Find the recipe item sold under a POS item label, honouring known aliases."""
    positions = _sales_item_positions(label, recipe_items, config)
    return recipe_items[positions[0]] if positions else None


def sales_frame(sales: Iterable[SalesRecord]) -> pd.DataFrame:
    """Sales records as a frame with duplicate (period, label) rows summed."""
    df = pd.DataFrame(
        [(s.period, s.label, s.count or 0.0, s.amount or 0.0) for s in sales],
        columns=SALES_COLUMNS,
    )
    if df.empty:
        return df
    df["count"] = pd.to_numeric(df["count"], errors="coerce").fillna(0.0).astype(float)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0).astype(float)
    return df.groupby(["period", "label"], sort=False, as_index=False)[
        ["count", "amount"]
    ].sum()


def recipe_book_frame(recipe_items: Iterable[RecipeItem]) -> pd.DataFrame:
    """Long-form recipe book: one row per item and ingredient actually used."""
    rows = [
        (key, item.item_name, ingredient, qty)
        for key, item in enumerate(recipe_items)
        for ingredient, qty in item.used_ingredients().items()
    ]
    return pd.DataFrame(rows, columns=BOOK_COLUMNS)


def estimate_item_mix(
    sales: Iterable[SalesRecord],
    recipe_items: Sequence[RecipeItem],
    granularity: Union[Granularity, str] = Granularity.CATEGORY,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> pd.DataFrame:
    """
    Attribute sold units to recipe items.

    Item-level labels are matched directly; category totals are split evenly
    across every item the category resolves to, since the true mix is unknown.
    A name listed more than once in the recipe book shares its count the same way.
    """
    granularity = Granularity(granularity)
    summary = sales_frame(sales)
    if summary.empty:
        return pd.DataFrame(columns=MIX_COLUMNS).astype(MIX_DTYPES)

    rows = []
    for _, row in summary.iterrows():
        period, label, count = row["period"], row["label"], row["count"]
        if granularity is Granularity.ITEM:
            positions = _sales_item_positions(label, recipe_items, config)
            if not positions:
                logger.debug("No recipe for sales item %r", label)
                continue
        else:
            if is_excluded_category(label, config):
                continue
            positions = _category_positions(label, recipe_items, config)
            if not positions:
                logger.debug("Category %r resolved to no recipe items", label)
                continue
        for pos, share in zip(positions, split_count(count, len(positions))):
            rows.append(
                {
                    "period": period,
                    "item_key": pos,
                    "item_name": recipe_items[pos].item_name,
                    "estimated_count": share,
                }
            )
    return pd.DataFrame(rows, columns=MIX_COLUMNS).astype(MIX_DTYPES)


def aggregate_usage(
    sales: Sequence[SalesRecord],
    recipe_items: Sequence[RecipeItem],
    granularity: Union[Granularity, str] = Granularity.CATEGORY,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> List[MonthlyIngredientUsage]:
    """
    Combine attributed item counts with recipe quantities into usage per period.

    Periods are emitted in the order first seen in *sales*, including periods
    whose sales contributed nothing. Ingredients with no usage are omitted.
    """
    periods = list(dict.fromkeys(record.period for record in sales))
    usage: Dict[str, Dict[str, float]] = {period: {} for period in periods}

    item_mix = estimate_item_mix(sales, recipe_items, granularity, config)
    recipe_book = recipe_book_frame(recipe_items)
    if not item_mix.empty and not recipe_book.empty:
        merged = item_mix.merge(recipe_book, how="inner", on=["item_key", "item_name"])
        merged["estimated_usage"] = (
            merged["estimated_count"].astype(float) * merged["quantity_per_unit"]
        )
        totals = merged.groupby(["period", "ingredient"], sort=False)[
            "estimated_usage"
        ].sum()
        for (period, ingredient), value in totals.items():
            usage[period][ingredient] = float(value)

    return [MonthlyIngredientUsage(period=period, usage=usage[period]) for period in periods]


def ingredient_totals(monthly_usage: Iterable[MonthlyIngredientUsage]) -> Dict[str, float]:
    """Total usage per ingredient across every period."""
    totals: Dict[str, float] = {}
    for month in monthly_usage:
        for ingredient, amount in month.usage.items():
            totals[ingredient] = totals.get(ingredient, 0.0) + amount
    return totals


def top_ingredients(
    monthly_usage: Iterable[MonthlyIngredientUsage], limit: int = 10
) -> List[IngredientUsage]:
    ranked = sorted(ingredient_totals(monthly_usage).items(), key=lambda kv: kv[1], reverse=True)
    return [IngredientUsage(name, total, infer_unit(name)) for name, total in ranked[:limit]]


def least_used_ingredients(
    monthly_usage: Iterable[MonthlyIngredientUsage], limit: int = 10
) -> List[IngredientUsage]:
    """Ingredients with the smallest positive totals, ascending."""
    ranked = sorted(
        ((name, total) for name, total in ingredient_totals(monthly_usage).items() if total > 0),
        key=lambda kv: kv[1],
    )
    return [IngredientUsage(name, total, infer_unit(name)) for name, total in ranked[:limit]]


def monthly_sales_trend(sales: Iterable[SalesRecord]) -> pd.DataFrame:
    """Return total revenue and units sold per period, in calendar order."""
    summary = sales_frame(sales)
    if summary.empty:
        return pd.DataFrame(
            columns=["period", "amount", "count", "amount_change_pct", "count_change_pct"]
        )

    trend = summary.groupby("period", sort=False)[["amount", "count"]].sum().reset_index()
    trend["_order"] = trend["period"].map(lambda p: period_index(p) or 13)
    trend = trend.sort_values("_order", kind="stable").drop(columns="_order")
    trend = trend.reset_index(drop=True)
    changes = trend[["amount", "count"]].pct_change().replace([np.inf, -np.inf], np.nan)
    trend["amount_change_pct"] = changes["amount"]
    trend["count_change_pct"] = changes["count"]
    return trend
