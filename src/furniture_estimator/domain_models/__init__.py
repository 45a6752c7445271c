"""Domain models for furniture components, products and their reference data."""

from .catalog import (
    DEFAULT_CALCULATION_LOGICS,
    DEFAULT_EFFICIENCY_CONFIGS,
    DEFAULT_PROCESS_TEMPLATES,
    DEFAULT_VARIABLES,
    CalculationLogic,
    CalculationVariable,
    EfficiencyConfig,
    ProcessTemplate,
    build_calculation_logic,
    template_by_code,
)
from .component import (
    Component,
    ComponentFeature,
    ComponentProcess,
    ComponentSize,
    ProcessParameter,
)
from .product import AssemblyProcess, ProductAssembly, ProductComponent
from .values import coerce_choice, normalize_key, round2, safe_float, to_float

__all__ = [
    "DEFAULT_CALCULATION_LOGICS",
    "DEFAULT_EFFICIENCY_CONFIGS",
    "DEFAULT_PROCESS_TEMPLATES",
    "DEFAULT_VARIABLES",
    "AssemblyProcess",
    "CalculationLogic",
    "CalculationVariable",
    "Component",
    "ComponentFeature",
    "ComponentProcess",
    "ComponentSize",
    "EfficiencyConfig",
    "ProcessParameter",
    "ProcessTemplate",
    "ProductAssembly",
    "ProductComponent",
    "build_calculation_logic",
    "coerce_choice",
    "normalize_key",
    "round2",
    "safe_float",
    "template_by_code",
    "to_float",
]
