import math

import pytest

from msy_analytics.features import (
    Granularity,
    aggregate_usage,
    estimate_item_mix,
    ingredient_totals,
    is_excluded_category,
    items_for_category,
    least_used_ingredients,
    match_sales_item,
    monthly_sales_trend,
    split_count,
    top_ingredients,
)
from msy_analytics.models import MonthlyIngredientUsage, RecipeItem, SalesRecord


def _names(items):
    return sorted(item.item_name for item in items)


def test_category_table_lookup(recipe_items):
    assert _names(items_for_category("Ramen", recipe_items)) == [
        "Beef Ramen",
        "Chicken Ramen",
        "Pork Ramen",
    ]


def test_most_specific_table_entry_wins(recipe_items):
    assert _names(items_for_category("Tossed Rice Noodle", recipe_items)) == [
        "Beef Tossed Rice Noodles"
    ]
    # The table knows "Tossed Ramen" but the menu has none of its dishes.
    assert items_for_category("Tossed Ramen", recipe_items) == []


def test_category_keyword_fallback(recipe_items):
    assert _names(items_for_category("Noodle Bowls", recipe_items)) == [
        "Beef Tossed Rice Noodles"
    ]
    assert _names(items_for_category("Rice Bowls", recipe_items)) == [
        "Beef Fried Rice",
        "Chicken Fried Rice",
        "Pork Fried Rice",
    ]
    assert _names(items_for_category("Chicken Specials", recipe_items)) == [
        "Chicken Cutlet",
        "Chicken Fried Rice",
        "Chicken Ramen",
        "Fried Wings",
    ]
    assert items_for_category("Sushi", recipe_items) == []


def test_non_food_categories_are_excluded():
    assert is_excluded_category("Gift Card")
    assert is_excluded_category("Signature Drinks")
    assert is_excluded_category("Combo Items")
    assert not is_excluded_category("Lunch Menu")


@pytest.mark.parametrize("count, parts", [(10, 3), (1, 7), (100, 17), (0, 4)])
def test_split_count_preserves_total(count, parts):
    shares = split_count(count, parts)
    assert len(shares) == parts
    assert math.fsum(shares) == pytest.approx(count)


def test_match_sales_item_uses_aliases(recipe_items):
    assert match_sales_item("Beef Ramen", recipe_items).item_name == "Beef Ramen"
    assert match_sales_item("  beef   ramen ", recipe_items).item_name == "Beef Ramen"
    assert match_sales_item("Mai's BF Chicken Cutlet Combo", recipe_items).item_name == "Chicken Cutlet"
    assert match_sales_item("Jasmine Milk Tea", recipe_items) is None


def test_category_sales_split_evenly(recipe_items):
    usage = aggregate_usage([SalesRecord("May", "Ramen", 30, 450.0)], recipe_items)

    assert [m.period for m in usage] == ["May"]
    may = usage[0].usage
    assert may["Ramen (count)"] == pytest.approx(30)
    assert may["Egg(count)"] == pytest.approx(30)
    assert may["Green Onion"] == pytest.approx(600)
    assert may["braised beef used (g)"] == pytest.approx(1400)
    assert may["Braised Pork(g)"] == pytest.approx(1400)


def test_duplicate_labels_are_summed_first(recipe_items):
    split = aggregate_usage(
        [SalesRecord("May", "Ramen", 10), SalesRecord("May", "Ramen", 20)], recipe_items
    )
    single = aggregate_usage([SalesRecord("May", "Ramen", 30)], recipe_items)
    assert split[0].usage == pytest.approx(single[0].usage)


def test_excluded_period_still_reported(recipe_items):
    usage = aggregate_usage(
        [SalesRecord("June", "Milk Tea", 80), SalesRecord("May", "Fried Rice", 3)],
        recipe_items,
    )
    assert [m.period for m in usage] == ["June", "May"]
    assert usage[0].usage == {}
    assert usage[1].usage["Rice(g)"] == pytest.approx(900)


def test_item_level_sales(recipe_items):
    usage = aggregate_usage(
        [
            SalesRecord("May", "Mai's BF Chicken Cutlet Combo", 10),
            SalesRecord("May", "Beef Ramen", 4),
            SalesRecord("May", "Gift Card", 2),
        ],
        recipe_items,
        granularity=Granularity.ITEM,
    )
    may = usage[0].usage
    assert may["flour (g)"] == pytest.approx(600)
    assert may["Tapioca Starch"] == pytest.approx(150)
    assert may["White onion"] == pytest.approx(300)
    assert may["braised beef used (g)"] == pytest.approx(560)
    # A zero quantity never shows up as usage.
    assert "Braised Chicken(g)" not in may


def test_granularity_accepts_strings(recipe_items):
    sales = [SalesRecord("May", "Beef Ramen", 1)]
    assert aggregate_usage(sales, recipe_items, "item")[0].usage["Ramen (count)"] == 1
    with pytest.raises(ValueError):
        aggregate_usage(sales, recipe_items, "dish")


def test_usage_is_conserved(recipe_items):
    sales = [
        SalesRecord("May", "Ramen", 31),
        SalesRecord("May", "All Day Menu", 17),
        SalesRecord("May", "Fried Chicken", 9),
        SalesRecord("May", "Drinks", 40),
        SalesRecord("June", "Lunch Menu", 13),
    ]
    by_name = {item.item_name: item for item in recipe_items}
    mix = estimate_item_mix(sales, recipe_items)

    expected = {}
    for _, row in mix.iterrows():
        for ingredient, qty in by_name[row["item_name"]].used_ingredients().items():
            expected[row["period"]] = expected.get(row["period"], 0.0) + qty * row["estimated_count"]

    for month in aggregate_usage(sales, recipe_items):
        assert sum(month.usage.values()) == pytest.approx(expected[month.period])


def test_category_attribution_sums_to_sold_count(recipe_items):
    mix = estimate_item_mix([SalesRecord("May", "All Day Menu", 100)], recipe_items)
    # Only the dishes on this menu receive a share.
    assert len(mix) == 9
    assert mix["estimated_count"].sum() == pytest.approx(100)


def test_empty_sales(recipe_items):
    assert aggregate_usage([], recipe_items) == []
    assert estimate_item_mix([], recipe_items).empty


def test_rankings():
    usage = [
        MonthlyIngredientUsage("May", {"Rice(g)": 500, "Egg(count)": 20, "Cilantro": 0}),
        MonthlyIngredientUsage("June", {"Rice(g)": 250, "Chicken Wings (pcs)": 40}),
    ]
    assert ingredient_totals(usage)["Rice(g)"] == 750

    top = top_ingredients(usage, limit=2)
    assert [(u.ingredient, u.total_usage, u.unit) for u in top] == [
        ("Rice(g)", 750, "g"),
        ("Chicken Wings (pcs)", 40, "pcs"),
    ]

    least = least_used_ingredients(usage)
    assert [u.ingredient for u in least] == ["Egg(count)", "Chicken Wings (pcs)", "Rice(g)"]
    assert least[0].unit == "count"


def test_monthly_sales_trend_in_calendar_order():
    trend = monthly_sales_trend(
        [
            SalesRecord("June", "Ramen", 30, 300.0),
            SalesRecord("May", "Ramen", 10, 100.0),
            SalesRecord("May", "Fried Rice", 10, 100.0),
        ]
    )
    assert list(trend["period"]) == ["May", "June"]
    assert list(trend["amount"]) == [200.0, 300.0]
    assert trend["amount_change_pct"].iloc[1] == pytest.approx(0.5)
    assert math.isnan(trend["count_change_pct"].iloc[0])


@pytest.mark.parametrize("granularity, label", [("category", "Ramen"), ("item", "Beef Ramen")])
def test_repeated_recipe_names_share_the_count(granularity, label):
    items = [RecipeItem("Beef Ramen", {"Rice(g)": 10}), RecipeItem("Beef Ramen", {"Rice(g)": 10})]
    (may,) = aggregate_usage([SalesRecord("May", label, 4)], items, granularity)
    assert may.usage == {"Rice(g)": pytest.approx(40.0)}

    mix = estimate_item_mix([SalesRecord("May", label, 4)], items, granularity)
    assert list(mix["item_key"]) == [0, 1]
    assert mix["estimated_count"].sum() == pytest.approx(4)
