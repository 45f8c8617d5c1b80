"""
Next-month need estimation and shipment recommendations for one ingredient.

The estimate is deliberately simple: last month's usage plus a buffer,
compared against the scheduled monthly supply.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .features import Granularity, estimate_item_mix, recipe_book_frame
from .models import (
    MonthlyIngredientUsage,
    RecipeItem,
    SalesRecord,
    ShipmentSchedule,
    sort_by_period,
)
from .reconcile import recipe_columns, shipment_usage
from .units import convert, resolve_match


class NeedStatus(str, Enum):
    MET = "met"
    OVER_MET = "over-met"
    NOT_MET = "not-met"


class RecommendationType(str, Enum):
    REDUCE = "reduce"
    INCREASE = "increase"
    NONE = "none"


@dataclass(frozen=True)
class ShipmentRecommendation:
    kind: RecommendationType
    message: str
    shipment_change: int = 0
    quantity_change_percent: Optional[float] = None


@dataclass(frozen=True)
class NeedEstimate:
    ingredient: str
    estimated_need: float
    scheduled_supply: float
    difference: float
    percent_difference: Optional[float]
    status: NeedStatus
    recommendation: ShipmentRecommendation


def classify_need(
    percent_difference: float, config: AnalyticsConfig = DEFAULT_CONFIG
) -> NeedStatus:
    """Under by more than 5% is not met, over by more than 10% is over-met."""
    if percent_difference < config.not_met_threshold:
        return NeedStatus.NOT_MET
    if percent_difference > config.over_met_threshold:
        return NeedStatus.OVER_MET
    return NeedStatus.MET


def _recommend_reduction(
    shipment: ShipmentSchedule,
    excess: float,
    supply: float,
    config: AnalyticsConfig,
) -> ShipmentRecommendation:
    target = excess * config.reduction_share
    per_shipment = shipment.quantity_per_shipment
    cut = math.floor(target / per_shipment) if per_shipment > 0 else 0
    remaining = shipment.shipment_count - cut

    if cut > 0 and remaining >= config.min_remaining_shipments:
        return ShipmentRecommendation(
            RecommendationType.REDUCE,
            f"Reduce number of shipments by {cut} "
            f"(from {shipment.shipment_count} to {remaining} shipments)",
            shipment_change=-cut,
        )

    percent = target / supply * 100
    return ShipmentRecommendation(
        RecommendationType.REDUCE,
        f"Reduce quantity per shipment by approximately {percent:.1f}% "
        f"(currently {per_shipment:,.0f} {shipment.unit} per shipment)",
        quantity_change_percent=-percent,
    )


def _recommend_increase(
    shipment: ShipmentSchedule,
    shortage: float,
    supply: float,
    config: AnalyticsConfig,
) -> ShipmentRecommendation:
    additional = shortage * (1 + config.shortage_buffer)
    per_shipment = shipment.quantity_per_shipment
    to_add = math.ceil(additional / per_shipment) if per_shipment > 0 else 0
    percent = shortage / supply * 100 if supply > 0 else None

    parts = []
    if to_add > 0:
        parts.append(
            f"Increase number of shipments by {to_add} "
            f"(from {shipment.shipment_count} to {shipment.shipment_count + to_add} shipments)"
        )
    if percent is not None:
        parts.append(f"increase quantity per shipment by approximately {percent:.1f}%")
    message = " or ".join(parts) or "Schedule shipments for this ingredient to meet estimated need"
    return ShipmentRecommendation(
        RecommendationType.INCREASE,
        message[0].upper() + message[1:],
        shipment_change=to_add,
        quantity_change_percent=percent,
    )


def estimate_need(
    monthly_usage: Sequence[float],
    shipment: ShipmentSchedule,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> NeedEstimate:
    """
    Estimate next month's need from chronological usage in shipment units.

    The need is the most recent month plus a 10% buffer. With no need but
    supply scheduled, the ingredient is over-met outright and no percentage
    difference exists.
    """
    last = float(monthly_usage[-1]) if len(monthly_usage) else 0.0
    need = last * (1 + config.need_buffer) if last > 0 else 0.0
    supply = shipment.monthly_supply
    difference = supply - need

    if need > 0:
        percent = 100.0 * difference / need
        status = classify_need(percent, config)
    else:
        percent = None
        status = NeedStatus.OVER_MET if supply > 0 else NeedStatus.MET

    if status is NeedStatus.OVER_MET and need > 0:
        recommendation = _recommend_reduction(shipment, difference, supply, config)
    elif status is NeedStatus.OVER_MET:
        recommendation = ShipmentRecommendation(
            RecommendationType.REDUCE,
            "No recent usage detected. Consider reducing or eliminating "
            "shipments for this ingredient.",
        )
    elif status is NeedStatus.NOT_MET:
        recommendation = _recommend_increase(shipment, abs(difference), supply, config)
    else:
        recommendation = ShipmentRecommendation(
            RecommendationType.NONE,
            "No action necessary - scheduled shipments adequately meet estimated need",
        )

    return NeedEstimate(
        ingredient=shipment.ingredient_name,
        estimated_need=need,
        scheduled_supply=supply,
        difference=difference,
        percent_difference=percent,
        status=status,
        recommendation=recommendation,
    )


def ingredient_usage_history(
    monthly_usage: Sequence[MonthlyIngredientUsage],
    shipment: ShipmentSchedule,
    recipe_items: Optional[Sequence[RecipeItem]] = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> List[Tuple[str, float]]:
    """
    Chronological ``(period, usage)`` pairs for one shipment line, in its units.

    Returns an empty list when no recipe column resolves to the shipment.
    """
    known_columns = recipe_columns(recipe_items)
    if shipment_usage(monthly_usage, shipment, config, known_columns).usage is None:
        return []
    history = []
    for entry in sort_by_period(monthly_usage):
        found = shipment_usage([entry], shipment, config, known_columns)
        history.append((entry.period, found.usage or 0.0))
    return history


def estimate_shipment_need(
    monthly_usage: Sequence[MonthlyIngredientUsage],
    shipment: ShipmentSchedule,
    recipe_items: Optional[Sequence[RecipeItem]] = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> NeedEstimate:
    history = ingredient_usage_history(monthly_usage, shipment, recipe_items, config)
    return estimate_need([usage for _, usage in history], shipment, config)


@dataclass(frozen=True)
class DishUsage:
    dish: str
    usage: float
    share_percent: float


@dataclass(frozen=True)
class IngredientProfile:
    ingredient: str
    unit: str
    dish_usage: List[DishUsage]
    monthly_usage: List[Tuple[str, float]]
    total_usage: float
    average_monthly_usage: float
    max_usage: float
    min_usage: float
    top_dish: Optional[str]
    top_dish_share: float
    total_dishes: int
    need: NeedEstimate


def ingredient_profile(
    sales: Sequence[SalesRecord],
    recipe_items: Sequence[RecipeItem],
    shipment: ShipmentSchedule,
    granularity: Union[Granularity, str] = Granularity.ITEM,
    config: AnalyticsConfig = DEFAULT_CONFIG,
    top_dishes: int = 10,
) -> Optional[IngredientProfile]:
    """
    Break one shipment ingredient's usage down by dish and by month.

    Returns ``None`` when the recipe book never uses the ingredient.
    """
    book = recipe_book_frame(recipe_items)
    if book.empty:
        return None
    book = book[
        book["ingredient"].map(
            lambda column: resolve_match(column, shipment.ingredient_name, config)
        )
    ].copy()
    if book.empty:
        return None

    book["quantity_in_shipment_unit"] = [
        convert(qty, column, shipment.unit, shipment.ingredient_name, config).quantity
        for column, qty in zip(book["ingredient"], book["quantity_per_unit"])
    ]

    periods = sort_by_period(dict.fromkeys(s.period for s in sales), key=str)
    item_mix = estimate_item_mix(sales, recipe_items, granularity, config)
    merged = item_mix.merge(book, how="inner", on=["item_key", "item_name"])
    merged["usage"] = (
        merged["estimated_count"].astype(float) * merged["quantity_in_shipment_unit"]
    )

    by_dish = (
        merged.groupby("item_name")["usage"].sum().sort_values(ascending=False)
        if not merged.empty
        else pd.Series(dtype=float)
    )
    by_month = (
        merged.groupby("period")["usage"].sum() if not merged.empty else pd.Series(dtype=float)
    )
    monthly = [(period, float(by_month.get(period, 0.0))) for period in periods]

    total = float(by_dish.sum())
    dishes = [
        DishUsage(dish, float(usage), float(usage) / total * 100 if total > 0 else 0.0)
        for dish, usage in by_dish.items()
    ]
    values = [usage for _, usage in monthly]
    positive = [v for v in values if v > 0]

    return IngredientProfile(
        ingredient=shipment.ingredient_name,
        unit=shipment.unit or "units",
        dish_usage=dishes[:top_dishes],
        monthly_usage=monthly,
        total_usage=sum(values),
        average_monthly_usage=sum(values) / len(values) if values else 0.0,
        max_usage=max(values, default=0.0),
        min_usage=min(positive, default=0.0),
        top_dish=dishes[0].dish if dishes else None,
        top_dish_share=dishes[0].share_percent if dishes else 0.0,
        total_dishes=len(dishes),
        need=estimate_need(values, shipment, config),
    )
