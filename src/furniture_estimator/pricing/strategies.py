"""Duration strategies: pluggable rules turning a component into process minutes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Iterable, Protocol, Sequence

from furniture_estimator.domain_models.catalog import (
    DEFAULT_VARIABLES,
    CalculationLogic,
    CalculationVariable,
    EfficiencyConfig,
    ProcessTemplate,
)
from furniture_estimator.domain_models.component import Component, ProcessParameter
from furniture_estimator.domain_models.values import round2
from furniture_estimator.expression import evaluate_detailed

from .time_models import (
    MINUTES_PER_HOUR,
    WorkTimeParams,
    build_environment,
    describe_environment,
    efficiency_minutes,
    legacy_duration_hours,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DurationResult:
    """Minutes for one process plus whether the rule evaluated cleanly."""

    minutes: float
    ok: bool = True
    diagnostic: str | None = None


class DurationStrategy(Protocol):
    kind: ClassVar[str]

    def compute(
        self, component: Component, parameters: Iterable[ProcessParameter] = ()
    ) -> DurationResult:
        ...


@dataclass(frozen=True)
class FormulaStrategy:
    logic: CalculationLogic
    catalog: Sequence[CalculationVariable] = DEFAULT_VARIABLES

    kind: ClassVar[str] = "formula"

    def compute(
        self, component: Component, parameters: Iterable[ProcessParameter] = ()
    ) -> DurationResult:
        env = build_environment(component, catalog=self.catalog, parameters=parameters)
        result = evaluate_detailed(self.logic.formula, env)
        if not result.ok:
            logger.warning(
                "Formula %r for component %r failed: %s",
                self.logic.name,
                component.id,
                result.diagnostic,
            )
            logger.debug("Environment was: %s", describe_environment(env))
        return DurationResult(round2(result.value), result.ok, result.diagnostic)


@dataclass(frozen=True)
class HeuristicStrategy:
    """Keyword heuristic on the process name; works in hours internally."""

    process_name: str

    kind: ClassVar[str] = "heuristic"

    def compute(
        self, component: Component, parameters: Iterable[ProcessParameter] = ()
    ) -> DurationResult:
        hours = legacy_duration_hours(self.process_name, WorkTimeParams.from_component(component))
        return DurationResult(round2(hours * MINUTES_PER_HOUR))


@dataclass(frozen=True)
class EfficiencyStrategy:
    config: EfficiencyConfig

    kind: ClassVar[str] = "efficiency"

    def compute(
        self, component: Component, parameters: Iterable[ProcessParameter] = ()
    ) -> DurationResult:
        return DurationResult(efficiency_minutes(self.config, component))


def strategy_for_template(template: ProcessTemplate) -> DurationStrategy:
    """Pick the duration strategy named by ``template.strategy``.

    Templates missing the data their strategy needs fall back to the
    heuristic on the template name.
    """

    if template.strategy == "formula":
        if template.calculation_logic is not None:
            return FormulaStrategy(template.calculation_logic)
        logger.info(
            "Template %s has no calculation logic; using the name heuristic", template.code
        )
    elif template.strategy == "efficiency":
        if template.efficiency is not None:
            return EfficiencyStrategy(template.efficiency)
        logger.info(
            "Template %s has no efficiency config; using the name heuristic", template.code
        )
    return HeuristicStrategy(template.name)


__all__ = [
    "DurationResult",
    "DurationStrategy",
    "EfficiencyStrategy",
    "FormulaStrategy",
    "HeuristicStrategy",
    "strategy_for_template",
]
