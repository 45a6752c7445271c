"""Formula-driven time and cost estimation for furniture manufacturing."""

from __future__ import annotations

from .expression import evaluate as evaluate_formula
from .expression import get_variables as extract_variables
from .expression import validate as validate_formula
from .pricing.estimator import (
    compute_process_cost,
    compute_process_duration,
    recompute_component_totals,
    recompute_product_totals,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "compute_process_cost",
    "compute_process_duration",
    "evaluate_formula",
    "extract_variables",
    "recompute_component_totals",
    "recompute_product_totals",
    "validate_formula",
]
