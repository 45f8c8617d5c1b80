"""
Plain record types shared by the analytics modules.

All records are immutable snapshots derived from one upload of spreadsheet
data; recomputing them from the same inputs always gives the same result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

T = TypeVar("T")

MONTH_ORDER = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

FREQUENCY_MULTIPLIERS = {
    "weekly": 4,
    "biweekly": 2,
    "monthly": 1,
}


def period_index(period: str) -> Optional[int]:
    """Return the 1-based month number for a label like 'May' or 'may 2025'."""
    tokens = str(period).strip().lower().replace("_", " ").split()
    for token in tokens:
        if token in MONTH_ORDER:
            return MONTH_ORDER[token]
    return None


def sort_by_period(entries: Iterable[T], key: Callable[[T], str] = lambda e: e.period) -> List[T]:
    """
    Sort *entries* by canonical month order.

    Labels that are not month names keep their input order after the known months.
    """
    indexed = list(enumerate(entries))
    unknown_rank = len(MONTH_ORDER) + 1

    def rank(pair):
        position, entry = pair
        idx = period_index(key(entry))
        return (idx if idx is not None else unknown_rank, position)

    return [entry for _, entry in sorted(indexed, key=rank)]


def frequency_multiplier(frequency: Optional[str]) -> int:
    """Shipments per month implied by a frequency label (unrecognised -> 1)."""
    return FREQUENCY_MULTIPLIERS.get(str(frequency or "").strip().lower(), 1)


def infer_unit(ingredient: str) -> str:
    """Infer a recipe ingredient's unit from its column-name suffix."""
    name = ingredient.lower()
    if "(g)" in name:
        return "g"
    if "(count)" in name:
        return "count"
    if "(pcs)" in name:
        return "pcs"
    return "units"


@dataclass(frozen=True)
class SalesRecord:
    period: str
    label: str
    count: float = 0.0
    amount: float = 0.0


@dataclass(frozen=True)
class RecipeItem:
    """One menu item and its per-unit bill of materials."""

    item_name: str
    ingredient_quantities: Mapping[str, float] = field(default_factory=dict)

    def used_ingredients(self) -> Dict[str, float]:
        """Ingredients with a positive quantity per unit sold."""
        return {
            name: float(qty)
            for name, qty in self.ingredient_quantities.items()
            if qty and qty > 0
        }


@dataclass(frozen=True)
class ShipmentSchedule:
    ingredient_name: str
    quantity_per_shipment: float
    unit: str
    shipment_count: int
    frequency: str

    @property
    def monthly_multiplier(self) -> int:
        return frequency_multiplier(self.frequency)

    @property
    def monthly_supply(self) -> float:
        """quantity per shipment x number of shipments x monthly multiplier."""
        return self.quantity_per_shipment * self.shipment_count * self.monthly_multiplier


@dataclass(frozen=True)
class IngredientUsage:
    ingredient: str
    total_usage: float
    unit: str


@dataclass(frozen=True)
class MonthlyIngredientUsage:
    period: str
    usage: Mapping[str, float] = field(default_factory=dict)
