"""Reference data: the variable catalog, calculation logics and process templates."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Literal, Sequence

from furniture_estimator.expression import (
    FormulaError,
    get_variables,
    is_identifier,
    lint_formula,
    validate,
)

from .values import coerce_choice

logger = logging.getLogger(__name__)

VariableKind = Literal["dimension", "count", "area", "volume", "complexity", "custom"]
ProcessCategory = Literal[
    "cutting", "drilling", "edging", "sanding", "assembly", "finishing", "inspection"
]
StrategyKind = Literal["formula", "heuristic", "efficiency"]
TimeUnit = Literal["minute", "hour"]

VARIABLE_KINDS: tuple[str, ...] = ("dimension", "count", "area", "volume", "complexity", "custom")
PROCESS_CATEGORIES: tuple[str, ...] = (
    "cutting",
    "drilling",
    "edging",
    "sanding",
    "assembly",
    "finishing",
    "inspection",
)
STRATEGY_KINDS: tuple[str, ...] = ("formula", "heuristic", "efficiency")
TIME_UNITS: tuple[str, ...] = ("minute", "hour")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in items:
        text = str(item).strip()
        if text:
            seen.setdefault(text, None)
    return tuple(seen)


@dataclass(frozen=True)
class CalculationVariable:
    """An identifier a formula may reference, with an optional fallback value."""

    name: str
    kind: VariableKind
    unit: str = ""
    description: str = ""
    default_value: float | None = None
    min_value: float | None = None
    max_value: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", coerce_choice(self.kind, VARIABLE_KINDS, field="variable kind"))
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError(
                f"Variable {self.name!r} has min_value {self.min_value} above max_value {self.max_value}"
            )

    def clamp(self, value: float) -> float:
        if self.min_value is not None and value < self.min_value:
            return float(self.min_value)
        if self.max_value is not None and value > self.max_value:
            return float(self.max_value)
        return value


DEFAULT_VARIABLES: tuple[CalculationVariable, ...] = (
    CalculationVariable("length", "dimension", "mm", "Component length"),
    CalculationVariable("width", "dimension", "mm", "Component width"),
    CalculationVariable("thickness", "dimension", "mm", "Component thickness"),
    CalculationVariable("area", "area", "mm²", "Component area"),
    CalculationVariable("volume", "volume", "mm³", "Component volume"),
    CalculationVariable("complexity", "complexity", "", "Complexity factor", default_value=1.0),
    CalculationVariable("holeCount", "count", "pcs", "Number of holes", default_value=0),
    CalculationVariable("grooveCount", "count", "pcs", "Number of grooves", default_value=0),
    CalculationVariable("chamferCount", "count", "pcs", "Number of chamfers", default_value=0),
    CalculationVariable("roundingCount", "count", "pcs", "Number of roundings", default_value=0),
    CalculationVariable("featureFactor", "custom", "", "Feature impact factor", default_value=1.0),
    CalculationVariable("quantity", "count", "pcs", "Component quantity", default_value=1),
)


def catalog_by_name(catalog: Iterable[CalculationVariable]) -> dict[str, CalculationVariable]:
    """Return the catalog keyed by name, rejecting duplicate or non-identifier names."""

    result: dict[str, CalculationVariable] = {}
    for variable in catalog:
        if not is_identifier(variable.name):
            raise ValueError(f"Variable name {variable.name!r} is not a valid identifier")
        if variable.name in result:
            raise ValueError(f"Duplicate variable {variable.name!r} in catalog")
        result[variable.name] = variable
    return result


@dataclass(frozen=True)
class CalculationLogic:
    """A named, reusable formula and the catalog entries it references."""

    id: str
    name: str
    formula: str
    variables: tuple[CalculationVariable, ...] = ()
    description: str = ""
    # Advisory only; several logics in one category may carry the flag.
    is_default: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", tuple(self.variables))

    @property
    def variable_names(self) -> tuple[str, ...]:
        return tuple(variable.name for variable in self.variables)


def build_calculation_logic(
    id: str,
    name: str,
    formula: str,
    *,
    description: str = "",
    is_default: bool = False,
    catalog: Sequence[CalculationVariable] = DEFAULT_VARIABLES,
    strict: bool = False,
) -> CalculationLogic:
    """Create a :class:`CalculationLogic` from authored text, rejecting bad formulas.

    Unbalanced parentheses always raise :class:`FormulaError`.  With
    ``strict=True`` any :func:`lint_formula` issue raises as well.  Identifiers
    missing from ``catalog`` are logged and left out of ``variables``.
    """

    known = catalog_by_name(catalog)
    if strict:
        issues = lint_formula(formula, known)
        if issues:
            raise FormulaError(formula, issues)
    elif not validate(formula):
        raise FormulaError(formula, ["unbalanced parentheses"])

    referenced: list[CalculationVariable] = []
    for identifier in get_variables(formula):
        variable = known.get(identifier)
        if variable is None:
            logger.warning("Formula %r references unknown variable %r", name, identifier)
            continue
        referenced.append(variable)

    return CalculationLogic(
        id=id,
        name=name,
        formula=formula,
        variables=tuple(referenced),
        description=description,
        is_default=is_default,
    )


def _builtin_logic(id: str, name: str, formula: str, description: str, *, is_default: bool = False) -> CalculationLogic:
    return build_calculation_logic(id, name, formula, description=description, is_default=is_default, strict=True)


DEFAULT_CALCULATION_LOGICS: tuple[CalculationLogic, ...] = (
    _builtin_logic(
        "1",
        "Basic cutting",
        "5 + (area / 10000) * 0.5 * complexity * featureFactor",
        "Base cutting time plus area, complexity and feature impact",
        is_default=True,
    ),
    _builtin_logic("2", "Drilling", "2 + holeCount * 0.5 * complexity", "Base drilling time plus hole count"),
    _builtin_logic(
        "3", "Edge banding", "3 + (length + width) * 2 / 1000 * complexity", "Base banding time plus perimeter"
    ),
    _builtin_logic("4", "Grooving", "4 + grooveCount * 1.5 * complexity", "Base grooving time plus groove count"),
    _builtin_logic("5", "Sanding", "4 + (area / 10000) * 0.4 * complexity", "Base sanding time plus area"),
    _builtin_logic(
        "6", "Assembly", "8 + (length + width) / 1000 * 0.5 * complexity", "Base assembly time plus size"
    ),
    _builtin_logic("7", "Painting", "15 + (area / 10000) * 0.8 * complexity", "Base painting time plus area"),
    _builtin_logic("8", "Inspection", "3 + (area / 10000) * 0.1", "Base inspection time plus area"),
)


@dataclass(frozen=True)
class EfficiencyConfig:
    """Per-process efficiency settings: a base time plus a size term."""

    id: str
    process_name: str
    base_time: float
    size_factor: float
    complexity_factor: float = 1.0
    unit: TimeUnit = "minute"
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit", coerce_choice(self.unit, TIME_UNITS, field="time unit"))


DEFAULT_EFFICIENCY_CONFIGS: tuple[EfficiencyConfig, ...] = (
    EfficiencyConfig("1", "Cutting", 5, 0.5, description="Precision cutting to drawing"),
    EfficiencyConfig("2", "Edge banding", 3, 0.3, description="Band the cut panel edges"),
    EfficiencyConfig("3", "Drilling", 2, 0.1, description="Drill holes per design"),
    EfficiencyConfig("4", "Sanding", 4, 0.4, description="Surface sanding"),
    EfficiencyConfig("5", "Assembly", 8, 0.2, description="Assemble the parts"),
    EfficiencyConfig("6", "Painting", 15, 0.8, description="Surface spray painting"),
    EfficiencyConfig("7", "Inspection", 3, 0.1, description="Quality inspection"),
)


@dataclass(frozen=True)
class ProcessTemplate:
    """A reusable manufacturing step and the rule that times it.

    Templates are shared by every component process that uses them, so they
    are immutable; :meth:`revise` returns an edited copy.
    """

    id: str
    code: str
    name: str
    category: ProcessCategory
    calculation_logic: CalculationLogic | None = None
    strategy: StrategyKind = "formula"
    efficiency: EfficiencyConfig | None = None
    required_equipment: tuple[str, ...] = ()
    required_materials: tuple[str, ...] = ()
    is_active: bool = True
    description: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "category", coerce_choice(self.category, PROCESS_CATEGORIES, field="process category")
        )
        object.__setattr__(
            self, "strategy", coerce_choice(self.strategy, STRATEGY_KINDS, field="duration strategy")
        )
        object.__setattr__(self, "required_equipment", _unique(self.required_equipment))
        object.__setattr__(self, "required_materials", _unique(self.required_materials))
        if not str(self.code or "").strip():
            raise ValueError(f"Process template {self.name!r} needs a code")

    @property
    def primary_equipment(self) -> str | None:
        return self.required_equipment[0] if self.required_equipment else None

    def revise(self, **changes: Any) -> "ProcessTemplate":
        """Return a copy with ``changes`` applied and ``updated_at`` refreshed."""

        changes.setdefault("updated_at", utcnow())
        return replace(self, **changes)


def _builtin_template(
    id: str,
    code: str,
    name: str,
    category: str,
    logic: CalculationLogic,
    equipment: Sequence[str],
    materials: Sequence[str],
    description: str,
) -> ProcessTemplate:
    return ProcessTemplate(
        id=id,
        code=code,
        name=name,
        category=category,  # type: ignore[arg-type]
        calculation_logic=logic,
        required_equipment=tuple(equipment),
        required_materials=tuple(materials),
        description=description,
    )


_LOGICS = {logic.id: logic for logic in DEFAULT_CALCULATION_LOGICS}

DEFAULT_PROCESS_TEMPLATES: tuple[ProcessTemplate, ...] = (
    _builtin_template("1", "CUT", "Cutting", "cutting", _LOGICS["1"], ["cnc_cutter"], ["board"], "Cut panels to drawing"),
    _builtin_template("2", "DRILL", "Drilling", "drilling", _LOGICS["2"], ["drilling_machine"], ["drill_bit"], "Drill holes per design"),
    _builtin_template("3", "EDGE", "Edge banding", "edging", _LOGICS["3"], ["edge_bander"], ["edge_tape", "glue"], "Band the cut panel edges"),
    _builtin_template("4", "GROOVE", "Grooving", "cutting", _LOGICS["4"], ["grooving_machine"], ["groove_cutter"], "Cut grooves into panels"),
    _builtin_template("5", "SAND", "Sanding", "sanding", _LOGICS["5"], ["sander"], ["sandpaper"], "Sand the surfaces"),
    _builtin_template("6", "ASSEMBLE", "Assembly", "assembly", _LOGICS["6"], ["assembly_tools"], ["screws", "connectors"], "Assemble the parts"),
    _builtin_template("7", "PAINT", "Painting", "finishing", _LOGICS["7"], ["spray_booth"], ["paint"], "Spray paint the surfaces"),
    _builtin_template("8", "INSPECT", "Inspection", "inspection", _LOGICS["8"], ["inspection_tools"], [], "Quality inspection"),
)


def template_by_code(code: str, templates: Iterable[ProcessTemplate] = DEFAULT_PROCESS_TEMPLATES) -> ProcessTemplate:
    """Return the template whose code matches ``code`` (case-insensitive)."""

    wanted = str(code or "").strip().upper()
    for template in templates:
        if template.code.upper() == wanted:
            return template
    raise KeyError(f"No process template with code {code!r}")


def default_logic_for_category(
    category: str,
    templates: Iterable[ProcessTemplate] = DEFAULT_PROCESS_TEMPLATES,
) -> CalculationLogic | None:
    """Return the logic flagged default among templates of ``category``.

    Falls back to the first logic found in the category when none is flagged.
    """

    wanted = coerce_choice(category, PROCESS_CATEGORIES, field="process category")
    candidates = [
        template.calculation_logic
        for template in templates
        if template.category == wanted and template.calculation_logic is not None
    ]
    for logic in candidates:
        if logic.is_default:
            return logic
    return candidates[0] if candidates else None


__all__ = [
    "DEFAULT_CALCULATION_LOGICS",
    "DEFAULT_EFFICIENCY_CONFIGS",
    "DEFAULT_PROCESS_TEMPLATES",
    "DEFAULT_VARIABLES",
    "PROCESS_CATEGORIES",
    "STRATEGY_KINDS",
    "TIME_UNITS",
    "VARIABLE_KINDS",
    "CalculationLogic",
    "CalculationVariable",
    "EfficiencyConfig",
    "ProcessCategory",
    "ProcessTemplate",
    "StrategyKind",
    "TimeUnit",
    "VariableKind",
    "build_calculation_logic",
    "catalog_by_name",
    "default_logic_for_category",
    "template_by_code",
    "utcnow",
]
