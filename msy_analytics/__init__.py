"""Ingredient usage, shipment reconciliation and forecasting for Mai Shun Yun."""

from .config import DEFAULT_CONFIG, AnalyticsConfig, ConfigError, load_config
from .features import Granularity, aggregate_usage, items_for_category
from .forecast import predict_next_usage
from .models import (
    IngredientUsage,
    MonthlyIngredientUsage,
    RecipeItem,
    SalesRecord,
    ShipmentSchedule,
)
from .needs import NeedStatus, estimate_need
from .reconcile import StockStatus, reconcile
from .units import convert, resolve_match

__all__ = [
    "DEFAULT_CONFIG",
    "AnalyticsConfig",
    "ConfigError",
    "Granularity",
    "IngredientUsage",
    "MonthlyIngredientUsage",
    "NeedStatus",
    "RecipeItem",
    "SalesRecord",
    "ShipmentSchedule",
    "StockStatus",
    "aggregate_usage",
    "convert",
    "estimate_need",
    "items_for_category",
    "load_config",
    "predict_next_usage",
    "reconcile",
    "resolve_match",
]
