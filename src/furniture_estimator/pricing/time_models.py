# time_models.py
# Turn a component into the numbers a duration rule needs (minutes, not money).
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from furniture_estimator.domain_models.catalog import (
    DEFAULT_VARIABLES,
    CalculationVariable,
    EfficiencyConfig,
)
from furniture_estimator.domain_models.component import Component, ComponentFeature, ProcessParameter
from furniture_estimator.domain_models.values import normalize_key, round2

from .rate_defaults import FIRE_RATED_MATERIALS, SOLID_WOOD_MATERIALS, THICK_BOARD_MM

# ---- Tunables ----
COMPLEXITY_FACTORS: Mapping[str, float] = {"simple": 1.0, "medium": 1.3, "complex": 1.8}

FEATURE_WEIGHTS: Mapping[str, float] = {
    "hole": 0.10,
    "groove": 0.20,
    "chamfer": 0.15,
    "rounding": 0.25,
    "custom": 0.0,
}
FEATURE_COUNT_VARIABLES: Mapping[str, str] = {
    "hole": "holeCount",
    "groove": "grooveCount",
    "chamfer": "chamferCount",
    "rounding": "roundingCount",
}

# Legacy heuristic base factors, in hours.
BASE_TIME_FACTORS: Mapping[str, float] = {
    "cut": 0.5,         # per m² of panel
    "edge": 0.3,        # per m of perimeter, per banded edge
    "drill": 0.1,       # per hole
    "assemble": 0.8,    # per m²
    "sand": 0.4,        # per m²
    "paint": 1.2,       # per m²
}
DEFAULT_PROCESS_HOURS = 0.5

# First match wins, so the order matters.
PROCESS_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("cut", ("cut", "blank", "切割", "下料")),
    ("edge", ("edge", "封边")),
    ("drill", ("drill", "punch", "钻孔", "打孔")),
    ("assemble", ("assembl", "fitting", "组装", "装配")),
    ("sand", ("sand", "polish", "打磨", "抛光")),
    ("paint", ("paint", "coat", "喷漆", "涂装")),
)

THICK_BOARD_TIME_FACTOR = 1.2
SOLID_WOOD_TIME_FACTOR = 1.3
FIRE_RATED_TIME_FACTOR = 1.1

MINUTES_PER_HOUR = 60.0


def complexity_factor(label: str) -> float:
    """Return the multiplier for a complexity label; unknown labels raise."""

    try:
        return COMPLEXITY_FACTORS[str(label).strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown complexity {label!r}; expected one of {', '.join(COMPLEXITY_FACTORS)}"
        ) from None


def feature_counts(features: Iterable[ComponentFeature]) -> dict[str, int]:
    counts = {name: 0 for name in FEATURE_COUNT_VARIABLES.values()}
    for feature in features:
        variable = FEATURE_COUNT_VARIABLES.get(feature.type)
        if variable is not None:
            counts[variable] += feature.count
    return counts


def feature_factor(features: Iterable[ComponentFeature]) -> float:
    return 1.0 + math.fsum(
        feature.count * FEATURE_WEIGHTS.get(feature.type, 0.0) for feature in features
    )


def build_environment(
    component: Component,
    *,
    catalog: Iterable[CalculationVariable] = DEFAULT_VARIABLES,
    parameters: Iterable[ProcessParameter] = (),
) -> dict[str, float]:
    """Return a fresh variable environment for evaluating formulas on ``component``.

    Catalog defaults come first, then the component's own values, then any
    numeric process parameters.  Values of catalog entries with bounds are
    clamped into range.
    """

    catalog = tuple(catalog)
    env: dict[str, float] = {
        variable.name: float(variable.default_value)
        for variable in catalog
        if variable.default_value is not None
    }

    size = component.size
    features = list(component.features)
    env.update(
        length=size.length,
        width=size.width,
        thickness=size.thickness,
        area=size.area,
        volume=size.volume,
        complexity=complexity_factor(component.complexity),
        featureFactor=feature_factor(features),
        quantity=float(component.quantity),
    )
    env.update({name: float(count) for name, count in feature_counts(features).items()})

    for parameter in parameters:
        value = parameter.numeric_value
        if value is not None and parameter.name:
            env[parameter.name] = value

    for variable in catalog:
        if variable.name in env:
            env[variable.name] = variable.clamp(env[variable.name])
    return env


@dataclass(frozen=True)
class WorkTimeParams:
    """Inputs of the legacy keyword heuristic."""

    length: float
    width: float
    thickness: float
    hole_count: int = 0
    edge_count: int = 0
    material: str = ""

    @property
    def area_m2(self) -> float:
        return self.length * self.width / 1_000_000.0

    @property
    def edge_length_m(self) -> float:
        return 2.0 * (self.length + self.width) / 1000.0

    @classmethod
    def from_component(cls, component: Component) -> "WorkTimeParams":
        holes = feature_counts(component.features)["holeCount"]
        return cls(
            length=component.size.length,
            width=component.size.width,
            thickness=component.size.thickness,
            hole_count=holes,
            edge_count=component.edge_count,
            material=component.material,
        )


def classify_process(process_name: str) -> str | None:
    """Return the base-factor key the legacy heuristic uses for ``process_name``."""

    text = str(process_name or "").lower()
    for key, keywords in PROCESS_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return key
    return None


def legacy_duration_hours(process_name: str, params: WorkTimeParams) -> float:
    key = classify_process(process_name)
    if key is None:
        hours = DEFAULT_PROCESS_HOURS
    elif key == "edge":
        hours = params.edge_length_m * BASE_TIME_FACTORS["edge"] * params.edge_count
    elif key == "drill":
        hours = params.hole_count * BASE_TIME_FACTORS["drill"]
    else:
        hours = params.area_m2 * BASE_TIME_FACTORS[key]

    if params.thickness > THICK_BOARD_MM:
        hours *= THICK_BOARD_TIME_FACTOR

    material = normalize_key(params.material)
    if material in SOLID_WOOD_MATERIALS:
        hours *= SOLID_WOOD_TIME_FACTOR
    elif material in FIRE_RATED_MATERIALS:
        hours *= FIRE_RATED_TIME_FACTOR

    return round2(hours)


def to_minutes(value: float, unit: str) -> float:
    return value * MINUTES_PER_HOUR if unit == "hour" else value


def efficiency_minutes(config: EfficiencyConfig, component: Component) -> float:
    # area in m², matching the size factors of the efficiency table
    raw = config.base_time + (
        component.size.area_m2
        * config.size_factor
        * config.complexity_factor
        * complexity_factor(component.complexity)
    )
    return round2(to_minutes(raw, config.unit))


def describe_environment(env: Mapping[str, Any]) -> str:
    return ", ".join(f"{name}={value:g}" for name, value in env.items())


__all__ = [
    "BASE_TIME_FACTORS",
    "COMPLEXITY_FACTORS",
    "DEFAULT_PROCESS_HOURS",
    "FEATURE_COUNT_VARIABLES",
    "FEATURE_WEIGHTS",
    "MINUTES_PER_HOUR",
    "PROCESS_KEYWORDS",
    "WorkTimeParams",
    "build_environment",
    "classify_process",
    "complexity_factor",
    "describe_environment",
    "efficiency_minutes",
    "feature_counts",
    "feature_factor",
    "legacy_duration_hours",
    "to_minutes",
]
