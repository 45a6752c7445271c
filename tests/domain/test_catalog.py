from __future__ import annotations

import dataclasses
import logging

import pytest

from furniture_estimator.domain_models.catalog import (
    DEFAULT_CALCULATION_LOGICS,
    DEFAULT_PROCESS_TEMPLATES,
    DEFAULT_VARIABLES,
    CalculationVariable,
    EfficiencyConfig,
    ProcessTemplate,
    build_calculation_logic,
    catalog_by_name,
    default_logic_for_category,
    template_by_code,
)
from furniture_estimator.expression import FormulaError, lint_formula


def test_default_catalog_is_unique_and_complete() -> None:
    names = [variable.name for variable in DEFAULT_VARIABLES]

    assert len(names) == len(set(names))
    assert {"length", "width", "thickness", "area", "volume", "complexity", "quantity"} <= set(names)
    assert catalog_by_name(DEFAULT_VARIABLES)["featureFactor"].default_value == 1.0


def test_catalog_rejects_duplicates_and_bad_names() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        catalog_by_name([CalculationVariable("a", "custom"), CalculationVariable("a", "count")])
    with pytest.raises(ValueError, match="identifier"):
        catalog_by_name([CalculationVariable("2x", "custom")])


def test_variable_bounds() -> None:
    variable = CalculationVariable("complexity", "complexity", min_value=1.0, max_value=1.5)

    assert variable.clamp(1.8) == 1.5
    assert variable.clamp(0.2) == 1.0
    assert variable.clamp(1.2) == 1.2
    with pytest.raises(ValueError):
        CalculationVariable("x", "custom", min_value=2, max_value=1)


def test_builtin_formulas_lint_clean() -> None:
    names = [variable.name for variable in DEFAULT_VARIABLES]
    for logic in DEFAULT_CALCULATION_LOGICS:
        assert lint_formula(logic.formula, names) == [], logic.name
        assert set(logic.variable_names) <= set(names)


def test_build_calculation_logic_rejects_unbalanced_formula() -> None:
    with pytest.raises(FormulaError) as excinfo:
        build_calculation_logic("x", "Broken", "(2 + area")

    assert "unbalanced parentheses" in excinfo.value.issues


def test_build_calculation_logic_strict_rejects_unknown_variables() -> None:
    with pytest.raises(FormulaError, match="unknown variable"):
        build_calculation_logic("x", "Mystery", "2 + mystery", strict=True)


def test_build_calculation_logic_lenient_skips_unknown_variables(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        logic = build_calculation_logic("x", "Mixed", "area + mystery * 2")

    assert logic.variable_names == ("area",)
    assert "mystery" in caplog.text


def test_default_templates_reference_default_logics() -> None:
    codes = [template.code for template in DEFAULT_PROCESS_TEMPLATES]

    assert codes == ["CUT", "DRILL", "EDGE", "GROOVE", "SAND", "ASSEMBLE", "PAINT", "INSPECT"]
    assert all(template.calculation_logic is not None for template in DEFAULT_PROCESS_TEMPLATES)
    assert template_by_code("cut").primary_equipment == "cnc_cutter"
    with pytest.raises(KeyError):
        template_by_code("WELD")


def test_process_template_normalises_fields() -> None:
    template = ProcessTemplate(
        id="x",
        code="POLISH",
        name="Polishing",
        category="Finishing",  # type: ignore[arg-type]
        strategy="Heuristic",  # type: ignore[arg-type]
        required_equipment=("sander", "sander", " ", "spray_booth"),
    )

    assert template.category == "finishing"
    assert template.strategy == "heuristic"
    assert template.required_equipment == ("sander", "spray_booth")


def test_builtin_templates_cannot_be_edited_in_place() -> None:
    cut = template_by_code("CUT")

    with pytest.raises(dataclasses.FrozenInstanceError):
        cut.name = "Sawing"  # type: ignore[misc]

    renamed = cut.revise(name="Sawing", required_equipment=["cutting_saw"])

    assert renamed.name == "Sawing"
    assert renamed.primary_equipment == "cutting_saw"
    assert renamed.updated_at >= cut.updated_at
    assert template_by_code("CUT").name == "Cutting"
    assert template_by_code("CUT") is cut


@pytest.mark.parametrize(
    "overrides",
    [{"code": ""}, {"category": "welding"}, {"strategy": "guess"}],
)
def test_process_template_rejects_invalid_fields(overrides: dict[str, str]) -> None:
    fields = {"id": "x", "code": "X", "name": "X", "category": "cutting", **overrides}
    with pytest.raises(ValueError):
        ProcessTemplate(**fields)  # type: ignore[arg-type]


def test_default_logic_for_category_prefers_flagged_logic() -> None:
    cutting = default_logic_for_category("cutting")
    drilling = default_logic_for_category("drilling")

    assert cutting is not None and cutting.is_default and cutting.name == "Basic cutting"
    assert drilling is not None and drilling.name == "Drilling"


def test_efficiency_config_rejects_unknown_unit() -> None:
    assert EfficiencyConfig("1", "Cutting", 5, 0.5, unit="Hour").unit == "hour"  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        EfficiencyConfig("1", "Cutting", 5, 0.5, unit="second")  # type: ignore[arg-type]
