"""Tabular process/component breakdowns and CSV rate tables, built on pandas."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from furniture_estimator.config import ConfigError, load_default_rates
from furniture_estimator.domain_models.values import normalize_key, round2

from .estimator import (
    component_completion,
    compute_process_cost,
    evaluate_process_duration,
    process_equipment,
    recompute_component_totals,
)
from .rate_defaults import RateTable
from .strategies import strategy_for_template

if TYPE_CHECKING:  # pragma: no cover - for static type checkers only
    from furniture_estimator.domain_models.product import ProductAssembly

logger = logging.getLogger(__name__)

PROCESS_COLUMNS = [
    "component",
    "code",
    "process",
    "strategy",
    "equipment",
    "minutes",
    "hours",
    "rate",
    "cost",
    "status",
    "ok",
]
COMPONENT_COLUMNS = [
    "component",
    "name",
    "material",
    "quantity",
    "per_product",
    "processes",
    "total_time",
    "material_cost",
    "process_cost",
    "total_cost",
    "completion",
]
RATE_COLUMNS = ("kind", "name", "rate")
RATE_KINDS = ("material", "equipment")


def process_breakdown(product: "ProductAssembly", *, rates: RateTable | None = None) -> pd.DataFrame:
    """Return one row per component process with its minutes and cost."""

    rates = rates if rates is not None else load_default_rates()
    rows = []
    for entry in product.components:
        component = entry.component
        for process in component.processes:
            template = process.template
            result = evaluate_process_duration(component, template, parameters=process.parameters)
            equipment = process_equipment(process)
            rows.append(
                {
                    "component": component.id,
                    "code": template.code,
                    "process": template.name,
                    "strategy": strategy_for_template(template).kind,
                    "equipment": equipment or "",
                    "minutes": result.minutes,
                    "hours": round2(result.minutes / 60.0),
                    "rate": rates.equipment_rate(equipment),
                    "cost": compute_process_cost(process, component, rates=rates),
                    "status": process.status,
                    "ok": result.ok,
                }
            )
    return pd.DataFrame(rows, columns=PROCESS_COLUMNS)


def component_summary(product: "ProductAssembly", *, rates: RateTable | None = None) -> pd.DataFrame:
    """Return one row per component with its recomputed totals and completion.

    ``per_product`` is the placement count recorded on the product entry. It is
    listed for reference only and does not scale the cost columns.
    """

    rates = rates if rates is not None else load_default_rates()
    rows = []
    for entry in product.components:
        component = entry.component
        totals = recompute_component_totals(component, rates=rates)
        rows.append(
            {
                "component": component.id,
                "name": component.name,
                "material": component.material,
                "quantity": component.quantity,
                "per_product": entry.quantity,
                "processes": len(component.processes),
                "total_time": totals.total_time,
                "material_cost": totals.material_cost,
                "process_cost": totals.process_cost,
                "total_cost": totals.total_cost,
                "completion": component_completion(component),
            }
        )
    return pd.DataFrame(rows, columns=COMPONENT_COLUMNS)


def load_rate_table(path: str | Path, *, base: RateTable | None = None) -> RateTable:
    """Load rate overrides from a ``kind,name,rate`` CSV on top of ``base``.

    Rows whose rate is not numeric, or whose kind is unknown, are skipped.
    """

    table_path = Path(path)
    if not table_path.exists():
        raise ConfigError(f"Rate table not found: {table_path}")

    try:
        df = pd.read_csv(table_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Malformed rate table {table_path.name}: {exc}") from exc

    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = [column for column in RATE_COLUMNS if column not in df.columns]
    if missing:
        raise ConfigError(f"Rate table {table_path.name} is missing columns: {', '.join(missing)}")

    df["kind"] = df["kind"].fillna("").astype(str).str.strip().str.lower()
    df["name"] = df["name"].fillna("").astype(str)
    df["rate"] = pd.to_numeric(df["rate"], errors="coerce")
    dropped = df["rate"].isna() | (df["rate"] < 0) | ~df["kind"].isin(RATE_KINDS)
    if dropped.any():
        logger.warning("Skipping %d unusable row(s) in %s", int(dropped.sum()), table_path.name)
    df = df.loc[~dropped]

    overrides: dict[str, dict[str, float]] = {kind: {} for kind in RATE_KINDS}
    for kind, name, rate in zip(df["kind"], df["name"], df["rate"]):
        key = normalize_key(name)
        if key:
            overrides[kind][key] = float(rate)

    base = base if base is not None else load_default_rates()
    return base.with_overrides(materials=overrides["material"], equipment=overrides["equipment"])


__all__ = [
    "COMPONENT_COLUMNS",
    "PROCESS_COLUMNS",
    "component_summary",
    "load_rate_table",
    "process_breakdown",
]
