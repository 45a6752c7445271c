"""Process durations, costs and the component/product rollups built on them.

Every total here is recomputed from the leaves (sizes, features, process
templates, rates) on each call; nothing is patched incrementally.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from furniture_estimator.config import EstimationParams, load_default_params, load_default_rates
from furniture_estimator.domain_models.catalog import ProcessTemplate
from furniture_estimator.domain_models.component import (
    Component,
    ComponentProcess,
    ProcessParameter,
)
from furniture_estimator.domain_models.values import round2

from .rate_defaults import THICK_BOARD_COST_FACTOR, THICK_BOARD_MM, RateTable
from .strategies import DurationResult, strategy_for_template
from .time_models import MINUTES_PER_HOUR

if TYPE_CHECKING:  # pragma: no cover - for static type checkers only
    from furniture_estimator.domain_models.product import ProductAssembly

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentTotals:
    total_time: float = 0.0
    material_cost: float = 0.0
    process_cost: float = 0.0
    total_cost: float = 0.0


@dataclass(frozen=True)
class ProductTotals:
    """A product's rollup, computed whole from its components each time."""

    total_components: int = 0
    total_time: float = 0.0
    material_cost: float = 0.0
    process_cost: float = 0.0
    total_cost: float = 0.0
    labor_cost: float = 0.0
    estimated_cost: float = 0.0


@dataclass(frozen=True)
class ProjectSummary:
    total_products: int = 0
    total_components: int = 0
    total_processes: int = 0
    total_cost: float = 0.0
    total_time: float = 0.0


def _rates(rates: RateTable | None) -> RateTable:
    return rates if rates is not None else load_default_rates()


def evaluate_process_duration(
    component: Component,
    template: ProcessTemplate,
    *,
    parameters: Iterable[ProcessParameter] = (),
) -> DurationResult:
    """Return the minutes ``template`` takes on ``component`` with its diagnostic.

    Never raises: an unexpected failure inside a strategy is logged and
    reported as a zero-minute result with ``ok=False``.
    """

    strategy = strategy_for_template(template)
    try:
        return strategy.compute(component, tuple(parameters))
    except Exception as exc:  # pragma: no cover - strategies are pluggable
        logger.exception(
            "Duration for %s on component %r could not be computed", template.code, component.id
        )
        return DurationResult(0.0, ok=False, diagnostic=f"{type(exc).__name__}: {exc}")


def compute_process_duration(
    component: Component,
    template: ProcessTemplate,
    *,
    parameters: Iterable[ProcessParameter] = (),
) -> float:
    """Return the process duration in minutes, rounded to two decimals."""

    return evaluate_process_duration(component, template, parameters=parameters).minutes


def process_equipment(process: ComponentProcess) -> str | None:
    """Return the equipment override, else the template's first required equipment."""

    return process.equipment or process.template.primary_equipment


def _cost_for_minutes(process: ComponentProcess, minutes: float, rates: RateTable) -> float:
    rate = rates.equipment_rate(process_equipment(process))
    return round2(rate * minutes / MINUTES_PER_HOUR)


def compute_process_cost(
    process: ComponentProcess,
    component: Component,
    *,
    rates: RateTable | None = None,
) -> float:
    minutes = compute_process_duration(component, process.template, parameters=process.parameters)
    return _cost_for_minutes(process, minutes, _rates(rates))


def material_cost(component: Component, *, rates: RateTable | None = None) -> float:
    cost = component.size.area_m2 * _rates(rates).material_price(component.material)
    if component.size.thickness > THICK_BOARD_MM:
        cost *= THICK_BOARD_COST_FACTOR
    return round2(cost)


def recompute_component_totals(
    component: Component, *, rates: RateTable | None = None
) -> ComponentTotals:
    rates = _rates(rates)
    minutes: list[float] = []
    costs: list[float] = []
    for process in component.processes:
        duration = compute_process_duration(component, process.template, parameters=process.parameters)
        minutes.append(duration)
        costs.append(_cost_for_minutes(process, duration, rates))
    process_cost = math.fsum(costs)
    materials = material_cost(component, rates=rates)
    return ComponentTotals(
        total_time=round2(math.fsum(minutes)),
        material_cost=materials,
        process_cost=round2(process_cost),
        total_cost=round2(materials + process_cost),
    )


def estimate_labor(total_time: float, material: float, params: EstimationParams) -> tuple[float, float]:
    """Return ``(labor_cost, estimated_cost)`` for ``total_time`` minutes of work."""

    labor = total_time / MINUTES_PER_HOUR * params.hourly_rate
    estimated = (material + labor) * (1.0 + params.overhead_rate)
    return round2(labor), round2(estimated)


def recompute_product_totals(
    components: Iterable[Component],
    *,
    rates: RateTable | None = None,
    params: EstimationParams | None = None,
) -> ProductTotals:
    rates = _rates(rates)
    params = params if params is not None else load_default_params()

    component_totals = [recompute_component_totals(c, rates=rates) for c in components]
    total_time = round2(math.fsum(t.total_time for t in component_totals))
    materials = round2(math.fsum(t.material_cost for t in component_totals))
    labor, estimated = estimate_labor(total_time, materials, params)
    return ProductTotals(
        total_components=len(component_totals),
        total_time=total_time,
        material_cost=materials,
        process_cost=round2(math.fsum(t.process_cost for t in component_totals)),
        total_cost=round2(math.fsum(t.total_cost for t in component_totals)),
        labor_cost=labor,
        estimated_cost=estimated,
    )


def completion_percentage(statuses: Iterable[str]) -> float:
    """Return the share of ``"completed"`` entries as a percentage; empty gives 0."""

    total = 0
    completed = 0
    for status in statuses:
        total += 1
        if status == "completed":
            completed += 1
    if not total:
        return 0.0
    return round2(completed / total * 100.0)


def component_completion(component: Component) -> float:
    return completion_percentage(process.status for process in component.processes)


def _product_leaf_statuses(product: "ProductAssembly") -> list[str]:
    statuses = [
        process.status
        for entry in product.components
        for process in entry.component.processes
    ]
    statuses.extend(process.status for process in product.assembly_processes)
    return statuses


def product_completion(product: "ProductAssembly") -> float:
    return completion_percentage(_product_leaf_statuses(product))


def summarize_project(
    products: Iterable["ProductAssembly"],
    *,
    rates: RateTable | None = None,
    params: EstimationParams | None = None,
) -> ProjectSummary:
    """Aggregate counts and totals across ``products``."""

    rates = _rates(rates)
    params = params if params is not None else load_default_params()

    product_count = 0
    component_count = 0
    process_count = 0
    costs: list[float] = []
    times: list[float] = []
    for product in products:
        components = [entry.component for entry in product.components]
        totals = recompute_product_totals(components, rates=rates, params=params)
        product_count += 1
        component_count += totals.total_components
        process_count += sum(len(c.processes) for c in components)
        costs.append(totals.total_cost)
        times.append(totals.total_time)

    return ProjectSummary(
        total_products=product_count,
        total_components=component_count,
        total_processes=process_count,
        total_cost=round2(math.fsum(costs)),
        total_time=round2(math.fsum(times)),
    )


__all__ = [
    "ComponentTotals",
    "ProductTotals",
    "ProjectSummary",
    "completion_percentage",
    "component_completion",
    "compute_process_cost",
    "compute_process_duration",
    "estimate_labor",
    "evaluate_process_duration",
    "material_cost",
    "process_equipment",
    "product_completion",
    "recompute_component_totals",
    "recompute_product_totals",
    "summarize_project",
]
