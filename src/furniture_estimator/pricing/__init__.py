"""Duration, cost and rollup helpers.

The pandas-backed reports live in :mod:`furniture_estimator.pricing.breakdown`
and are imported on demand.
"""
from __future__ import annotations

from .estimator import (
    ComponentTotals,
    ProductTotals,
    ProjectSummary,
    completion_percentage,
    component_completion,
    compute_process_cost,
    compute_process_duration,
    material_cost,
    product_completion,
    recompute_component_totals,
    recompute_product_totals,
    summarize_project,
)
from .rate_defaults import (
    DEFAULT_EQUIPMENT_RATE,
    DEFAULT_MATERIAL_PRICE,
    EQUIPMENT_HOURLY_RATES,
    MATERIAL_UNIT_PRICES,
    RateTable,
)
from .strategies import (
    DurationResult,
    EfficiencyStrategy,
    FormulaStrategy,
    HeuristicStrategy,
    strategy_for_template,
)
from .time_models import build_environment, complexity_factor, feature_factor

__all__ = [
    "DEFAULT_EQUIPMENT_RATE",
    "DEFAULT_MATERIAL_PRICE",
    "EQUIPMENT_HOURLY_RATES",
    "MATERIAL_UNIT_PRICES",
    "ComponentTotals",
    "DurationResult",
    "EfficiencyStrategy",
    "FormulaStrategy",
    "HeuristicStrategy",
    "ProductTotals",
    "ProjectSummary",
    "RateTable",
    "build_environment",
    "completion_percentage",
    "complexity_factor",
    "component_completion",
    "compute_process_cost",
    "compute_process_duration",
    "feature_factor",
    "material_cost",
    "product_completion",
    "recompute_component_totals",
    "recompute_product_totals",
    "strategy_for_template",
    "summarize_project",
]
