"""Compare ingredient consumption against scheduled shipments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .models import MonthlyIngredientUsage, RecipeItem, ShipmentSchedule
from .units import MatchTier, convert, match_tier

logger = logging.getLogger(__name__)


class StockStatus(str, Enum):
    SHORTAGE_RISK = "shortage_risk"
    OVERSTOCKED = "overstocked"
    OPTIMAL = "optimal"
    NO_DATA = "no_data"


RECOMMENDATIONS = {
    StockStatus.SHORTAGE_RISK: "Increase shipments - risk of shortage",
    StockStatus.OVERSTOCKED: "Reduce shipments - overstocked",
    StockStatus.OPTIMAL: "Optimal",
    StockStatus.NO_DATA: "No shipment/usage correlation available",
}


@dataclass(frozen=True)
class ShipmentUsage:
    """Usage of one shipment line, in shipment units, summed over recipe columns."""

    usage: Optional[float]
    columns: Tuple[str, ...] = ()
    fuzzy_match: bool = False
    approximate: bool = False


@dataclass(frozen=True)
class Reconciliation:
    ingredient: str
    unit: str
    monthly_supply: float
    usage: Optional[float]
    utilization_percent: Optional[float]
    classification: StockStatus
    matched_columns: Tuple[str, ...] = field(default_factory=tuple)
    fuzzy_match: bool = False
    approximate: bool = False

    @property
    def recommendation(self) -> str:
        return RECOMMENDATIONS[self.classification]


def classify_utilization(
    utilization_percent: Optional[float], config: AnalyticsConfig = DEFAULT_CONFIG
) -> StockStatus:
    """Band a utilization percentage; ``None`` means there is nothing to compare."""
    if utilization_percent is None:
        return StockStatus.NO_DATA
    if utilization_percent < config.overstock_threshold:
        return StockStatus.OVERSTOCKED
    if utilization_percent > config.shortage_threshold:
        return StockStatus.SHORTAGE_RISK
    return StockStatus.OPTIMAL


def utilization(usage: Optional[float], monthly_supply: float) -> Optional[float]:
    if usage is None or not monthly_supply or monthly_supply <= 0:
        return None
    return usage / monthly_supply * 100


def _same_period(left: str, right: str) -> bool:
    return str(left).strip().lower() == str(right).strip().lower()


def _column_totals(entries: Iterable[MonthlyIngredientUsage]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for entry in entries:
        for column, amount in entry.usage.items():
            totals[column] = totals.get(column, 0.0) + amount
    return totals


def shipment_usage(
    entries: Iterable[MonthlyIngredientUsage],
    shipment: ShipmentSchedule,
    config: AnalyticsConfig = DEFAULT_CONFIG,
    known_columns: Iterable[str] = (),
) -> ShipmentUsage:
    """
    Sum usage of every recipe column that resolves to *shipment*.

    *known_columns* lists recipe columns that exist even without sales, so an
    ingredient used by the menu but unsold reads as zero rather than no data.
    """
    totals = _column_totals(entries)
    columns = list(dict.fromkeys(list(totals) + list(known_columns)))

    matched: List[str] = []
    fuzzy = False
    approximate = False
    total = 0.0
    for column in columns:
        tier = match_tier(column, shipment.ingredient_name, config)
        if tier is MatchTier.NONE:
            continue
        matched.append(column)
        fuzzy = fuzzy or tier.is_fuzzy
        converted = convert(
            totals.get(column, 0.0),
            column,
            shipment.unit,
            shipment.ingredient_name,
            config,
        )
        approximate = approximate or converted.approximate
        total += converted.quantity

    if not matched:
        logger.debug("No recipe column matches shipment %r", shipment.ingredient_name)
        return ShipmentUsage(usage=None)
    return ShipmentUsage(total, tuple(matched), fuzzy, approximate)


def recipe_columns(recipe_items: Optional[Iterable[RecipeItem]]) -> List[str]:
    if not recipe_items:
        return []
    return list(
        dict.fromkeys(name for item in recipe_items for name in item.used_ingredients())
    )


def reconcile(
    monthly_usage: Sequence[MonthlyIngredientUsage],
    shipments: Iterable[ShipmentSchedule],
    period: Optional[str] = None,
    recipe_items: Optional[Iterable[RecipeItem]] = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> List[Reconciliation]:
    """
    Classify each shipment line as overstocked, optimal or at risk of shortage.

    Without *period*, usage is the average over every period in
    *monthly_usage*; with it, only that period's usage is compared.
    """
    if period is None:
        entries = list(monthly_usage)
    else:
        entries = [entry for entry in monthly_usage if _same_period(entry.period, period)]
    periods = len(entries)
    known_columns = recipe_columns(recipe_items)

    results = []
    for shipment in shipments:
        supply = shipment.monthly_supply
        if periods:
            found = shipment_usage(entries, shipment, config, known_columns)
        else:
            found = ShipmentUsage(usage=None)
        usage = found.usage / periods if found.usage is not None else None
        percent = utilization(usage, supply)
        results.append(
            Reconciliation(
                ingredient=shipment.ingredient_name,
                unit=shipment.unit,
                monthly_supply=supply,
                usage=usage,
                utilization_percent=percent,
                classification=classify_utilization(percent, config),
                matched_columns=found.columns,
                fuzzy_match=found.fuzzy_match,
                approximate=found.approximate,
            )
        )
    return results


def rank_by_deviation(results: Iterable[Reconciliation]) -> List[Reconciliation]:
    """Order records by how far utilization sits from 50%; records without data go last."""
    return sorted(
        results,
        key=lambda r: (
            r.utilization_percent is None,
            -abs((r.utilization_percent or 0.0) - 50.0),
        ),
    )
