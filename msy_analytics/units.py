"""
Resolve recipe ingredient columns to shipment lines and convert quantities.

Recipe columns carry their unit in the name ("Braised Beef used (g)",
"Egg(count)") while shipments are bought in pounds, pieces or whole items.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .models import infer_unit

logger = logging.getLogger(__name__)

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_SUFFIX_TOKENS = {"used", "g", "count", "pcs"}
_COUNT_MARKERS = ("count", "pcs", "pieces", "eggs", "rolls")
_POUND_UNIT = re.compile(r"\blbs?\b|\bpounds?\b")
_GRAM_UNIT = re.compile(r"^(g|grams?)$")


class MatchTier(str, Enum):
    """How a recipe column was tied to a shipment line, strongest first."""

    ALIAS = "alias"
    DIRECT = "direct"
    FIRST_WORD = "first_word"
    NONE = "none"

    @property
    def is_fuzzy(self) -> bool:
        return self in (MatchTier.DIRECT, MatchTier.FIRST_WORD)


@dataclass(frozen=True)
class Conversion:
    """A quantity in shipment units; ``approximate`` marks pass-through values."""

    quantity: float
    approximate: bool = False


def _alias_form(recipe_name: str) -> str:
    lowered = recipe_name.lower().replace("(", " ").replace(")", " ")
    return " ".join(lowered.split())


def clean_recipe_name(recipe_name: str) -> str:
    """Drop unit annotations and suffix tokens: 'Braised Beef used (g)' -> 'braised beef'."""
    stripped = _PARENTHETICAL.sub(" ", recipe_name.lower())
    return " ".join(t for t in stripped.split() if t not in _SUFFIX_TOKENS)


def clean_shipment_name(shipment_name: str) -> str:
    """'Peas + Carrot' -> 'peas carrot'."""
    return " ".join(shipment_name.lower().replace("+", " ").split())


def _direct_match(recipe_clean: str, shipment_clean: str) -> bool:
    if not recipe_clean or not shipment_clean:
        return False
    return (
        recipe_clean == shipment_clean
        or shipment_clean in recipe_clean
        or recipe_clean in shipment_clean
    )


def _first_word_match(recipe_clean: str, shipment_clean: str) -> bool:
    if not recipe_clean or not shipment_clean:
        return False
    word = recipe_clean.split()[0]
    return word == shipment_clean.split()[0] and len(word) > 2


def match_tier(
    recipe_name: str,
    shipment_name: str,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> MatchTier:
    """
    Decide whether a recipe column and a shipment line are the same substance.

    Shipment names listed in the alias table are decided by that table alone;
    other names fall back to cleaned substring and first-word comparisons,
    tried against each constituent of a ``+``-joined composite as well.
    """
    shipment_key = shipment_name.strip().lower()
    aliases = config.shipment_aliases.get(shipment_key)
    if aliases is not None:
        recipe_alias_form = _alias_form(recipe_name)
        vetoes = config.shipment_alias_exclusions.get(shipment_key, ())
        if any(word in recipe_alias_form for word in vetoes):
            return MatchTier.NONE
        if any(alias in recipe_alias_form for alias in aliases):
            logger.debug("Alias match: %r -> %r", recipe_name, shipment_name)
            return MatchTier.ALIAS
        return MatchTier.NONE

    recipe_clean = clean_recipe_name(recipe_name)
    candidates = [clean_shipment_name(shipment_name)]
    if "+" in shipment_name:
        candidates.extend(
            clean_shipment_name(part) for part in shipment_name.split("+") if part.strip()
        )

    for tier, test in (
        (MatchTier.DIRECT, _direct_match),
        (MatchTier.FIRST_WORD, _first_word_match),
    ):
        if any(test(recipe_clean, candidate) for candidate in candidates):
            logger.info(
                "Fuzzy %s match: %r -> %r", tier.value, recipe_name, shipment_name
            )
            return tier
    return MatchTier.NONE


def resolve_match(
    recipe_name: str,
    shipment_name: str,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> bool:
    return match_tier(recipe_name, shipment_name, config) is not MatchTier.NONE


def is_count_based(label: str) -> bool:
    lowered = label.lower()
    return any(marker in lowered for marker in _COUNT_MARKERS)


def is_gram_column(recipe_name: str, config: AnalyticsConfig = DEFAULT_CONFIG) -> bool:
    lowered = recipe_name.lower()
    if "(g)" in lowered or " g)" in lowered:
        return True
    return any(name in lowered for name in config.gram_ingredients)


def _whole_unit_weight(
    shipment_name: Optional[str], recipe_name: str, config: AnalyticsConfig
) -> Optional[float]:
    haystack = f"{shipment_name or ''} {recipe_name}".lower()
    for name, grams in config.whole_unit_grams.items():
        if name in haystack:
            return grams
    return None


def _units_agree(recipe_name: str, shipment_unit: str, config: AnalyticsConfig) -> bool:
    recipe_unit = infer_unit(recipe_name)
    if recipe_unit in ("count", "pcs"):
        return is_count_based(shipment_unit)
    if recipe_unit == "g" or is_gram_column(recipe_name, config):
        return bool(_GRAM_UNIT.match(shipment_unit))
    return False


def convert(
    quantity: float,
    recipe_name: str,
    shipment_unit: str,
    shipment_name: Optional[str] = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> Conversion:
    """
    Convert *quantity* measured in the recipe column's unit into *shipment_unit*.

    Grams become pounds (1 g = 0.00220462 lb) or whole items when a per-item
    weight is known. Counts are never converted. Anything else passes through
    unchanged and is flagged approximate unless both sides are known to agree.
    """
    unit = (shipment_unit or "").strip().lower()
    recipe_counted = is_count_based(recipe_name)
    shipment_counted = is_count_based(unit)

    if "whole" in unit and not recipe_counted and is_gram_column(recipe_name, config):
        grams = _whole_unit_weight(shipment_name, recipe_name, config)
        if grams:
            return Conversion(quantity / grams)

    if (
        _POUND_UNIT.search(unit)
        and not shipment_counted
        and not recipe_counted
        and is_gram_column(recipe_name, config)
    ):
        return Conversion(quantity * config.grams_to_pounds)

    if _units_agree(recipe_name, unit, config):
        return Conversion(quantity)

    logger.debug(
        "No conversion from %r to %r; passing quantity through", recipe_name, shipment_unit
    )
    return Conversion(quantity, approximate=True)
