"""
Command-line inventory report over normalized Mai Shun Yun CSV exports.

Example::

    msy-report --sales sales.csv --recipes ingredient.csv --shipments shipment.csv \
        --granularity category --ingredient Beef --horizon 3
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from .config import ConfigError, load_config
from .data_loader import load_recipe_csv, load_sales_csv, load_shipments_csv
from .features import Granularity, aggregate_usage, top_ingredients
from .forecast import holt_winters_forecast, predict_next_usage
from .needs import estimate_shipment_need, ingredient_usage_history
from .reconcile import rank_by_deviation, reconcile


def _positive_int(value):
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_args(args=None):
    parser = argparse.ArgumentParser(
        description=(
            "Reconcile ingredient usage derived from sales against shipment "
            "schedules and forecast next month's usage."
        )
    )
    parser.add_argument(
        "--sales",
        type=Path,
        required=True,
        help="Sales CSV with period, label (or category/item_name), count and amount",
    )
    parser.add_argument(
        "--recipes",
        type=Path,
        required=True,
        help="Wide recipe CSV: 'Item name' plus one column per ingredient",
    )
    parser.add_argument(
        "--shipments", type=Path, required=True, help="Shipment schedule CSV"
    )
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=Granularity.CATEGORY.value,
        help="Whether sales labels are POS categories or menu items (default: category)",
    )
    parser.add_argument("--period", help="Reconcile a single period instead of the monthly average")
    parser.add_argument("--ingredient", help="Shipment ingredient to estimate next month's need for")
    parser.add_argument(
        "--horizon",
        type=_positive_int,
        default=3,
        help="Months to project the --ingredient usage ahead (default: 3)",
    )
    parser.add_argument("--top", type=int, default=10, help="Number of top ingredients to list")
    parser.add_argument("--config", type=Path, help="JSON file overriding lookup tables and constants")
    parser.add_argument("--verbose", action="store_true", help="Log match decisions")
    return parser.parse_args(args)


def _print_table(title: str, frame: pd.DataFrame) -> None:
    print(f"\n== {title} ==")
    if frame.empty:
        print("(no data)")
    else:
        print(frame.to_string(index=False))


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        sales = load_sales_csv(args.sales)
        recipes = load_recipe_csv(args.recipes)
        shipments = load_shipments_csv(args.shipments)
    except (OSError, ValueError, pd.errors.ParserError) as exc:
        print(f"Failed to load inputs: {exc}", file=sys.stderr)
        return 1

    usage = aggregate_usage(sales, recipes, args.granularity, config)

    _print_table(
        "Top ingredients",
        pd.DataFrame(
            [(u.ingredient, round(u.total_usage, 2), u.unit) for u in top_ingredients(usage, args.top)],
            columns=["ingredient", "total_usage", "unit"],
        ),
    )

    results = rank_by_deviation(reconcile(usage, shipments, args.period, recipes, config))
    _print_table(
        "Shipment reconciliation" + (f" ({args.period})" if args.period else " (monthly average)"),
        pd.DataFrame(
            [
                (
                    r.ingredient,
                    r.monthly_supply,
                    r.unit,
                    "n/a" if r.usage is None else round(r.usage, 2),
                    "n/a" if r.utilization_percent is None else f"{r.utilization_percent:.1f}%",
                    r.recommendation + (" (approx.)" if r.approximate else ""),
                )
                for r in results
            ],
            columns=["ingredient", "monthly_supply", "unit", "usage", "utilization", "recommendation"],
        ),
    )

    predictions = predict_next_usage(usage, config)
    _print_table(
        "Next month prediction",
        pd.DataFrame(
            sorted(((k, round(v)) for k, v in predictions.items()), key=lambda kv: -kv[1]),
            columns=["ingredient", "predicted_usage"],
        ),
    )

    if args.ingredient:
        wanted = args.ingredient.strip().lower()
        shipment = next((s for s in shipments if s.ingredient_name.lower() == wanted), None)
        if shipment is None:
            print(f"No shipment schedule for {args.ingredient}", file=sys.stderr)
            return 1
        need = estimate_shipment_need(usage, shipment, recipes, config)
        print(f"\n== Need estimate: {shipment.ingredient_name} ==")
        print(f"Estimated need:   {need.estimated_need:,.2f} {shipment.unit}")
        print(f"Scheduled supply: {need.scheduled_supply:,.2f} {shipment.unit}")
        print(f"Status:           {need.status.value}")
        print(f"Recommendation:   {need.recommendation.message}")

        history = ingredient_usage_history(usage, shipment, recipes, config)
        if history:
            series = pd.Series(
                [value for _, value in history],
                index=[period for period, _ in history],
                dtype=float,
            )
            projection = holt_winters_forecast(series, args.horizon)
            _print_table(
                f"Projection: {shipment.ingredient_name} ({projection.model_name})",
                pd.DataFrame(
                    {
                        "period": projection.point_forecast.index,
                        "forecast": projection.point_forecast.round(2).to_numpy(),
                        "lower": projection.lower.round(2).to_numpy(),
                        "upper": projection.upper.round(2).to_numpy(),
                    }
                ),
            )

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
