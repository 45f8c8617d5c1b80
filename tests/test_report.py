import pytest

from msy_analytics.report import main


@pytest.fixture
def inputs(tmp_path):
    sales = tmp_path / "sales.csv"
    sales.write_text(
        "period,category,count,amount\n"
        "May,Ramen,30,\"$450.00\"\n"
        "June,Ramen,20,\"$300.00\"\n"
        "June,Gift Card,5,\"$125.00\"\n",
        encoding="utf-8",
    )
    recipes = tmp_path / "recipes.csv"
    recipes.write_text(
        "Item name,braised beef used (g),Egg(count)\n"
        "Beef Ramen,140,1\n"
        "Pork Ramen,0,1\n",
        encoding="utf-8",
    )
    shipments = tmp_path / "shipments.csv"
    shipments.write_text(
        "Ingredient,Quantity per shipment,Unit of shipment,Number of shipments,frequency\n"
        "Beef,40,lbs,2,weekly\n"
        "Egg,300,eggs,1,weekly\n",
        encoding="utf-8",
    )
    return [
        "--sales", str(sales),
        "--recipes", str(recipes),
        "--shipments", str(shipments),
    ]


def test_report_prints_all_sections(inputs, capsys):
    assert main(inputs + ["--ingredient", "beef"]) == 0
    out = capsys.readouterr().out
    assert "== Top ingredients ==" in out
    assert "== Shipment reconciliation (monthly average) ==" in out
    assert "== Next month prediction ==" in out
    assert "== Need estimate: Beef ==" in out
    assert "Egg(count)" in out
    assert "Reduce shipments - overstocked" in out


def test_report_single_period(inputs, capsys):
    assert main(inputs + ["--period", "May"]) == 0
    assert "== Shipment reconciliation (May) ==" in capsys.readouterr().out


def test_report_unknown_ingredient(inputs, capsys):
    assert main(inputs + ["--ingredient", "Saffron"]) == 1
    assert "No shipment schedule for Saffron" in capsys.readouterr().err


def test_report_missing_input(inputs, tmp_path, capsys):
    args = list(inputs)
    args[1] = str(tmp_path / "missing.csv")
    assert main(args) == 1
    assert "Failed to load inputs" in capsys.readouterr().err


def test_report_projects_ingredient_usage(inputs, capsys):
    assert main(inputs + ["--ingredient", "Beef", "--horizon", "2"]) == 0
    out = capsys.readouterr().out
    assert "== Projection: Beef (moving_average) ==" in out
    assert "July" in out
    assert "August" in out


def test_report_rejects_non_positive_horizon(inputs):
    with pytest.raises(SystemExit):
        main(inputs + ["--horizon", "0"])
