from __future__ import annotations

from typing import Callable

import pytest

from furniture_estimator.domain_models.catalog import (
    DEFAULT_VARIABLES,
    CalculationVariable,
    EfficiencyConfig,
    ProcessTemplate,
    build_calculation_logic,
)
from furniture_estimator.domain_models.component import Component, ComponentFeature, ProcessParameter
from furniture_estimator.pricing import time_models
from furniture_estimator.pricing.strategies import (
    EfficiencyStrategy,
    FormulaStrategy,
    HeuristicStrategy,
    strategy_for_template,
)


@pytest.mark.parametrize(
    "label,expected",
    [("simple", 1.0), ("medium", 1.3), ("complex", 1.8), ("Medium", 1.3)],
)
def test_complexity_factor(label: str, expected: float) -> None:
    assert time_models.complexity_factor(label) == expected


@pytest.mark.parametrize("label", ["extreme", "", "1.3"])
def test_complexity_factor_rejects_unknown_labels(label: str) -> None:
    with pytest.raises(ValueError):
        time_models.complexity_factor(label)


def test_feature_factor_and_counts() -> None:
    features = [
        ComponentFeature(id="a", type="hole", count=4),
        ComponentFeature(id="b", type="groove", count=1),
        ComponentFeature(id="c", type="hole", count=2),
        ComponentFeature(id="d", type="custom", count=9),
    ]

    assert time_models.feature_factor(features) == pytest.approx(1 + 0.6 + 0.2)
    assert time_models.feature_counts(features) == {
        "holeCount": 6,
        "grooveCount": 1,
        "chamferCount": 0,
        "roundingCount": 0,
    }
    assert time_models.feature_factor([]) == 1.0


def test_build_environment_overlays_component_values(make_component: Callable[..., Component]) -> None:
    env = time_models.build_environment(make_component(holes=4))

    assert env["area"] == 720_000
    assert env["volume"] == 12_960_000
    assert env["complexity"] == 1.3
    assert env["holeCount"] == 4
    assert env["featureFactor"] == pytest.approx(1.4)
    assert env["quantity"] == 1
    assert set(variable.name for variable in DEFAULT_VARIABLES) <= set(env)


def test_build_environment_applies_parameters_and_bounds(make_component: Callable[..., Component]) -> None:
    catalog = (
        *[v for v in DEFAULT_VARIABLES if v.name != "complexity"],
        CalculationVariable("complexity", "complexity", min_value=1.0, max_value=1.5),
        CalculationVariable("setupMinutes", "custom", default_value=3.0),
    )
    component = make_component(complexity="complex")

    env = time_models.build_environment(
        component,
        catalog=catalog,
        parameters=[ProcessParameter("setupMinutes", "7.5"), ProcessParameter("holeCount", 3)],
    )

    assert env["complexity"] == 1.5
    assert env["setupMinutes"] == 7.5
    assert env["holeCount"] == 3
    assert time_models.build_environment(component, catalog=catalog)["setupMinutes"] == 3.0


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Cutting", "cut"),
        ("Panel blanking", "cut"),
        ("Edge banding", "edge"),
        ("Drilling", "drill"),
        ("Final assembly", "assemble"),
        ("Polishing", "sand"),
        ("Top coat", "paint"),
        ("Inspection", None),
        ("Cut edge", "cut"),
        ("封边处理", "edge"),
        ("下料", "cut"),
    ],
)
def test_classify_process_keyword_order(name: str, expected: str | None) -> None:
    assert time_models.classify_process(name) == expected


@pytest.mark.parametrize(
    "name,overrides,expected",
    [
        ("Cutting", {}, 0.36),
        ("Cutting", {"thickness": 30, "material": "solid_wood"}, 0.56),
        ("Edge banding", {"edge_count": 2}, 2.16),
        ("Drilling", {"hole_count": 4}, 0.4),
        ("Painting", {}, 0.86),
        ("Inspection", {}, 0.5),
        ("Inspection", {"material": "Fire Rated Board"}, 0.55),
        ("切割", {"length": 1000, "width": 1000, "material": "实木板"}, 0.65),
        ("钻孔", {"hole_count": 4, "material": "防火板"}, 0.44),
    ],
)
def test_legacy_duration_hours(name: str, overrides: dict, expected: float) -> None:
    params = time_models.WorkTimeParams(
        **{"length": 1200, "width": 600, "thickness": 18, "material": "density_board", **overrides}
    )
    assert time_models.legacy_duration_hours(name, params) == expected


def test_efficiency_minutes_converts_units(make_component: Callable[..., Component]) -> None:
    component = make_component()

    minutes = EfficiencyConfig("1", "Cutting", 5, 0.5)
    hours = EfficiencyConfig("2", "Cutting", 0.1, 0.2, unit="hour")

    assert time_models.efficiency_minutes(minutes, component) == 5.47
    assert time_models.efficiency_minutes(hours, component) == 17.23


def test_strategy_selection_and_fallbacks(templates: dict[str, ProcessTemplate]) -> None:
    assert isinstance(strategy_for_template(templates["CUT"]), FormulaStrategy)

    bare = ProcessTemplate(id="x", code="SAW", name="Cutting", category="cutting")
    assert strategy_for_template(bare) == HeuristicStrategy("Cutting")

    config = EfficiencyConfig("1", "Cutting", 5, 0.5)
    efficient = ProcessTemplate(
        id="y", code="SAW2", name="Cutting", category="cutting", strategy="efficiency", efficiency=config
    )
    assert strategy_for_template(efficient) == EfficiencyStrategy(config)

    missing = ProcessTemplate(id="z", code="SAW3", name="Cutting", category="cutting", strategy="efficiency")
    assert isinstance(strategy_for_template(missing), HeuristicStrategy)


def test_heuristic_strategy_reports_minutes(make_component: Callable[..., Component]) -> None:
    result = HeuristicStrategy("Cutting").compute(make_component())

    assert result.ok
    assert result.minutes == pytest.approx(21.6)


def test_formula_strategy_reports_failures(make_component: Callable[..., Component]) -> None:
    logic = build_calculation_logic("x", "Broken", "2 + setupMinutes")

    result = FormulaStrategy(logic).compute(make_component())

    assert result.ok is False
    assert result.minutes == 0.0
    assert "setupMinutes" in (result.diagnostic or "")
