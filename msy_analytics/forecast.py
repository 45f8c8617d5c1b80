"""Time-series forecasting utilities for monthly ingredient demand."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd
from statsmodels.tsa.holtwinters import ExponentialSmoothing

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .models import MONTH_ORDER, MonthlyIngredientUsage, period_index, sort_by_period

_MONTH_NAMES = [name.title() for name, _ in sorted(MONTH_ORDER.items(), key=lambda kv: kv[1])]


@dataclass
class ForecastResult:
    """Container for forecast outputs and metadata."""

    point_forecast: pd.Series
    lower: pd.Series
    upper: pd.Series
    model_name: str


def usage_history(monthly_usage: Iterable[MonthlyIngredientUsage]) -> Dict[str, List[float]]:
    """Observed values per ingredient in calendar order; absent months are skipped."""
    history: Dict[str, List[float]] = {}
    for month in sort_by_period(monthly_usage):
        for ingredient, amount in month.usage.items():
            history.setdefault(ingredient, []).append(float(amount))
    return history


def predict_value(observations: Sequence[float], window: int = 3) -> float:
    """
    Average of the last *window* observations plus the whole-series slope.

    ``trend = (last - first) / len(observations)``; the result never drops
    below zero. A single observation is its own prediction.
    """
    if window <= 0:
        raise ValueError("window must be positive")
    if not observations:
        raise ValueError("observations must not be empty")
    if len(observations) == 1:
        return float(observations[0])

    recent = observations[-window:]
    average = sum(recent) / len(recent)
    trend = (observations[-1] - observations[0]) / len(observations)
    return max(0.0, average + trend)


def predict_next_usage(
    monthly_usage: Iterable[MonthlyIngredientUsage],
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> Dict[str, float]:
    """Project next-period usage for every ingredient with at least one observation."""
    return {
        ingredient: predict_value(values, config.forecast_window)
        for ingredient, values in usage_history(monthly_usage).items()
    }


def ingredient_series(
    monthly_usage: Iterable[MonthlyIngredientUsage], ingredient: str
) -> pd.Series:
    """Monthly usage of one ingredient indexed by period label, zero where unused."""
    months = sort_by_period(monthly_usage)
    return pd.Series(
        [float(m.usage.get(ingredient, 0.0)) for m in months],
        index=pd.Index([m.period for m in months], name="period"),
        name=ingredient,
        dtype=float,
    )


def moving_average_forecast(
    y: pd.Series,
    horizon: int,
    window: int = 3,
    alpha: float = 1.96,
) -> ForecastResult:
    """
    Forecast future demand using a trailing moving average.

    Parameters
    ----------
    y
        Historical series indexed by period label.
    horizon
        Number of periods to forecast.
    window
        Size of the trailing window used to compute the average.
    alpha
        Z-multiplier for approximate confidence bounds (default 95%).
    """
    if horizon <= 0:
        raise ValueError("horizon must be positive")
    if window <= 0:
        raise ValueError("window must be positive")

    history = y.dropna().astype(float)
    future_index = _build_future_index(history.index, horizon)
    if history.empty:
        zeros = pd.Series(np.zeros(horizon), index=future_index)
        return ForecastResult(zeros, zeros, zeros, model_name="moving_average")

    tail = history.tail(min(window, len(history)))
    mean = tail.mean()
    std = tail.std(ddof=1) if len(tail) > 1 else 0.0

    forecast = pd.Series(np.full(horizon, mean), index=future_index)
    lower = forecast - alpha * std
    upper = forecast + alpha * std
    return ForecastResult(
        point_forecast=forecast,
        lower=lower.clip(lower=0),
        upper=upper,
        model_name="moving_average",
    )


def holt_winters_forecast(
    y: pd.Series,
    horizon: int,
    min_observations: int = 4,
) -> ForecastResult:
    """
    Forecast future demand with Holt's additive-trend exponential smoothing.

    Six months of history cannot support a seasonal component, so only level
    and trend are fitted. Falls back to a moving average when the series is
    too short or the model cannot converge.
    """
    if horizon <= 0:
        raise ValueError("horizon must be positive")

    history = y.dropna().astype(float)
    if len(history) < min_observations:
        return moving_average_forecast(history, horizon)

    try:
        model = ExponentialSmoothing(
            history.to_numpy(),
            trend="add",
            seasonal=None,
            initialization_method="estimated",
        )
        fitted = model.fit(optimized=True)
        pred = np.asarray(fitted.forecast(horizon), dtype=float)
        sigma = float(np.sqrt(fitted.sse / max(len(history) - 2, 1)))
    except Exception:  # noqa: BLE001
        return moving_average_forecast(history, horizon)

    future_index = _build_future_index(history.index, horizon)
    point = pd.Series(pred, index=future_index).clip(lower=0)
    return ForecastResult(
        point_forecast=point,
        lower=(point - 1.96 * sigma).clip(lower=0),
        upper=point + 1.96 * sigma,
        model_name="holt_winters",
    )


def _build_future_index(index: pd.Index, horizon: int) -> pd.Index:
    """Label future periods with the month names following the last observed month."""
    if len(index):
        last = period_index(index[-1])
        if last is not None:
            names = [_MONTH_NAMES[(last + step - 1) % 12] for step in range(1, horizon + 1)]
            return pd.Index(names, name="period")
    return pd.RangeIndex(start=0, stop=horizon, step=1)
