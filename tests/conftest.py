import pytest

from msy_analytics.models import RecipeItem, ShipmentSchedule


@pytest.fixture
def recipe_items():
    return [
        RecipeItem(
            "Beef Ramen",
            {"braised beef used (g)": 140, "Ramen (count)": 1, "Green Onion": 20, "Egg(count)": 1},
        ),
        RecipeItem(
            "Pork Ramen",
            {"Braised Pork(g)": 140, "Ramen (count)": 1, "Green Onion": 20, "Egg(count)": 1},
        ),
        RecipeItem(
            "Chicken Ramen",
            {"Braised Chicken(g)": 140, "Ramen (count)": 1, "Green Onion": 20, "Egg(count)": 1},
        ),
        RecipeItem(
            "Beef Fried Rice",
            {"braised beef used (g)": 100, "Rice(g)": 300, "Peas(g)": 20, "Carrot(g)": 20, "Egg(count)": 1},
        ),
        RecipeItem(
            "Chicken Fried Rice",
            {"Braised Chicken(g)": 100, "Rice(g)": 300, "Peas(g)": 20, "Carrot(g)": 20, "Egg(count)": 1},
        ),
        RecipeItem(
            "Pork Fried Rice",
            {"Braised Pork(g)": 100, "Rice(g)": 300, "Peas(g)": 20, "Carrot(g)": 20, "Egg(count)": 1},
        ),
        RecipeItem(
            "Fried Wings",
            {"Chicken Wings (pcs)": 8, "flour (g)": 50, "Tapioca Starch": 10},
        ),
        RecipeItem(
            "Chicken Cutlet",
            {"Braised Chicken(g)": 0, "flour (g)": 60, "Tapioca Starch": 15, "White onion": 30},
        ),
        RecipeItem(
            "Beef Tossed Rice Noodles",
            {"braised beef used (g)": 120, "Rice Noodles(g)": 200, "Boychoy(g)": 40, "Cilantro": 5},
        ),
    ]


@pytest.fixture
def shipments():
    return [
        ShipmentSchedule("Beef", 40, "lbs", 2, "weekly"),
        ShipmentSchedule("Chicken", 30, "lbs", 2, "weekly"),
        ShipmentSchedule("Rice", 50, "lbs", 1, "weekly"),
        ShipmentSchedule("Ramen", 500, "count", 1, "weekly"),
        ShipmentSchedule("Egg", 300, "eggs", 1, "weekly"),
        ShipmentSchedule("Peas + Carrot", 10, "lbs", 1, "biweekly"),
        ShipmentSchedule("Chicken Wings", 200, "pieces", 1, "weekly"),
        ShipmentSchedule("White Onion", 20, "whole", 1, "monthly"),
        ShipmentSchedule("Tapioca Starch", 5, "lbs", 1, "monthly"),
        ShipmentSchedule("Rice Noodles", 20, "lbs", 1, "weekly"),
        ShipmentSchedule("Bokchoy", 8, "lbs", 1, "weekly"),
        ShipmentSchedule("Green Onion", 5, "lbs", 1, "weekly"),
        ShipmentSchedule("Cilantro", 2, "lbs", 1, "biweekly"),
        ShipmentSchedule("Flour", 20, "lbs", 1, "monthly"),
        ShipmentSchedule("Mystery Spice", 1, "lbs", 1, "monthly"),
    ]


@pytest.fixture
def shipment_by_name(shipments):
    return {s.ingredient_name: s for s in shipments}
