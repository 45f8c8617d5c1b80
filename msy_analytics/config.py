"""
Configuration for the Mai Shun Yun ingredient analytics engine.

This module holds ONLY data: menu and shipment lookup tables plus the policy
constants used by the reconciler, forecaster and need estimator. Every core
function accepts a ``config`` argument, so another catalogue can be plugged in
by loading a JSON document over the defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MSY_ANALYTICS_CONFIG"


class ConfigError(ValueError):
    """Raised when a configuration document cannot be applied."""


# =============================================================================
# MENU TABLES
# =============================================================================

# POS category label -> recipe book items that contribute to it.
CATEGORY_TO_ITEMS: Dict[str, Tuple[str, ...]] = {
    "Ramen": ("Beef Ramen", "Pork Ramen", "Chicken Ramen"),
    "Tossed Ramen": ("Beef Tossed Ramen", "Pork Tossed Ramen", "Chicken Tossed Ramen"),
    "Fried Rice": ("Beef Fried Rice", "Pork Fried Rice", "Chicken Fried Rice"),
    "Rice Noodle": (
        "Beef Rice Noodle Soup",
        "Pork Rice Noodle Soup",
        "Chicken Rice Noodle Soup",
    ),
    "Tossed Rice Noodle": (
        "Beef Tossed Rice Noodles",
        "Pork Tossed Rice Noodles",
        "Chicken Tossed Rice Noodles",
    ),
    "Fried Chicken": ("Fried Wings", "Chicken Cutlet"),
    "All Day Menu": (
        "Beef Tossed Ramen",
        "Beef Ramen",
        "Beef Fried Rice",
        "Pork Fried Rice",
        "Chicken Fried Rice",
        "Fried Wings",
        "Pork Tossed Ramen",
        "Pork Ramen",
        "Chicken Tossed Ramen",
        "Chicken Ramen",
        "Chicken Cutlet",
        "Beef Tossed Rice Noodles",
        "Pork Tossed Rice Noodles",
        "Chicken Tossed Rice Noodles",
        "Beef Rice Noodle Soup",
        "Pork Rice Noodle Soup",
        "Chicken Rice Noodle Soup",
    ),
    "Lunch Menu": (
        "Beef Fried Rice",
        "Pork Fried Rice",
        "Chicken Fried Rice",
        "Beef Ramen",
        "Pork Ramen",
        "Chicken Ramen",
    ),
}

# (category keyword, item must contain any of, item must contain none of)
CATEGORY_KEYWORD_RULES: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    ("ramen", ("ramen",), ()),
    ("rice", ("rice",), ("noodle",)),
    ("noodle", ("noodle",), ()),
    ("chicken", ("chicken", "wing"), ()),
    ("fried", ("fried",), ()),
)

# Non-food POS lines never contribute ingredient usage.
EXCLUDED_CATEGORY_KEYWORDS: Tuple[str, ...] = (
    "gift card",
    "drink",
    "milk tea",
    "fruit tea",
    "signature drinks",
    "bingsu",
    "dessert",
    "appetizer",
    "wonton",
    "special offer",
    "combo",
    "jas-lemonade",
)

# POS item label variants -> recipe book item name.
ITEM_ALIASES: Dict[str, str] = {
    "mai's bf chicken cutlet combo": "Chicken Cutlet",
    "mai's bf chicken cutlet": "Chicken Cutlet",
    "chicken cutlet combo": "Chicken Cutlet",
    "chicken cutlet": "Chicken Cutlet",
}

# =============================================================================
# SHIPMENT TABLES
# =============================================================================

# Shipment display name -> substrings identifying it in recipe column names.
SHIPMENT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "beef": ("braised beef", "beef"),
    "chicken": ("braised chicken", "chicken"),
    "chicken wings": ("chicken wings",),
    "ramen": ("ramen",),
    "rice noodles": ("rice noodles",),
    "rice": ("rice",),
    "egg": ("egg",),
    "flour": ("flour",),
    "green onion": ("green onion",),
    "cilantro": ("cilantro",),
    "white onion": ("white onion",),
    "peas + carrot": ("peas", "carrot"),
    "bokchoy": ("boychoy", "bokchoy"),
    "tapioca starch": ("tapioca starch",),
}

# Words in a recipe column that veto an alias hit for the shipment.
SHIPMENT_ALIAS_EXCLUSIONS: Dict[str, Tuple[str, ...]] = {
    "rice": ("noodle",),
    "chicken": ("wing",),
}

# Recipe columns measured in grams that lack a "(g)" suffix.
GRAM_INGREDIENTS: Tuple[str, ...] = (
    "tapioca starch",
    "pickled cabbage",
    "pickle cabbage",
    "green onion",
    "cilantro",
    "white onion",
)

# Weight of one whole unit, for shipments counted in "whole" items.
WHOLE_UNIT_GRAMS: Dict[str, float] = {
    "white onion": 130.0,
}

GRAMS_TO_POUNDS = 0.00220462


def _tupled(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_tupled(v) for v in value)
    if isinstance(value, dict):
        return {k: _tupled(v) for k, v in value.items()}
    return value


def _lowered(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    if isinstance(value, tuple):
        return tuple(_lowered(v) for v in value)
    if isinstance(value, dict):
        return {_lowered(k): _lowered(v) for k, v in value.items()}
    return value


# Tables matched against lowercased names; loaded documents are folded to match.
_CASE_FOLDED_KEYS = (
    "category_keyword_rules",
    "excluded_category_keywords",
    "shipment_aliases",
    "shipment_alias_exclusions",
    "gram_ingredients",
    "whole_unit_grams",
)


@dataclass(frozen=True)
class AnalyticsConfig:
    """Lookup tables and policy constants for one restaurant catalogue."""

    category_items: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(CATEGORY_TO_ITEMS)
    )
    category_keyword_rules: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
        CATEGORY_KEYWORD_RULES
    )
    excluded_category_keywords: Tuple[str, ...] = EXCLUDED_CATEGORY_KEYWORDS
    item_aliases: Mapping[str, str] = field(default_factory=lambda: dict(ITEM_ALIASES))
    shipment_aliases: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(SHIPMENT_ALIASES)
    )
    shipment_alias_exclusions: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(SHIPMENT_ALIAS_EXCLUSIONS)
    )
    gram_ingredients: Tuple[str, ...] = GRAM_INGREDIENTS
    whole_unit_grams: Mapping[str, float] = field(
        default_factory=lambda: dict(WHOLE_UNIT_GRAMS)
    )
    grams_to_pounds: float = GRAMS_TO_POUNDS

    # Utilization bands (percent of monthly supply).
    overstock_threshold: float = 50.0
    shortage_threshold: float = 90.0

    # Forecaster: observations averaged before adding the trend.
    forecast_window: int = 3

    # Need estimator.
    need_buffer: float = 0.10
    reduction_share: float = 0.80
    shortage_buffer: float = 0.10
    not_met_threshold: float = -5.0
    over_met_threshold: float = 10.0
    min_remaining_shipments: int = 1

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], base: Optional["AnalyticsConfig"] = None
    ) -> "AnalyticsConfig":
        """Return *base* (defaults when omitted) with the keys in *data* overridden."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        overrides = {key: _tupled(value) for key, value in data.items()}
        for key in _CASE_FOLDED_KEYS:
            if key in overrides:
                overrides[key] = _lowered(overrides[key])
        for key in ("forecast_window", "min_remaining_shipments"):
            if key in overrides and not isinstance(overrides[key], int):
                raise ConfigError(f"{key} must be an integer")
        return replace(base or cls(), **overrides)


DEFAULT_CONFIG = AnalyticsConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> AnalyticsConfig:
    """
    Load a JSON configuration document layered over :data:`DEFAULT_CONFIG`.

    When *path* is omitted, the ``MSY_ANALYTICS_CONFIG`` environment variable
    is consulted; without either the defaults are returned unchanged.
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR)
    if not path:
        return DEFAULT_CONFIG

    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must contain a JSON object")

    logger.info("Loaded analytics configuration from %s", path)
    return AnalyticsConfig.from_mapping(data)
