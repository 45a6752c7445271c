"""Plain-record and JSON serialisation for products, components and templates.

Records use camelCase keys and ISO-8601 dates.  Derived values (area,
volume, calculated times, totals) are written for readers of the export but
ignored on import, where they are recomputed from the leaves.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, MutableMapping

from furniture_estimator.domain_models.catalog import (
    CalculationLogic,
    CalculationVariable,
    EfficiencyConfig,
    ProcessTemplate,
)
from furniture_estimator.domain_models.component import (
    Component,
    ComponentFeature,
    ComponentProcess,
    ComponentSize,
    ProcessParameter,
)
from furniture_estimator.domain_models.product import (
    AssemblyProcess,
    ProductAssembly,
    ProductComponent,
)

logger = logging.getLogger(__name__)

RECORD_VERSION = 1

TemplateRegistry = MutableMapping[str, ProcessTemplate]


def _date_to_text(value: datetime) -> str:
    return value.isoformat()


def _date_from_text(value: Any, *, field: str) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"{field} is not an ISO-8601 date: {value!r}") from exc


def _require(record: Mapping[str, Any], key: str, kind: str) -> Any:
    if not isinstance(record, Mapping):
        raise ValueError(f"{kind} record must be an object, got {type(record).__name__}")
    if key not in record:
        raise ValueError(f"{kind} record is missing {key!r}")
    return record[key]


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


# ---- reference data -------------------------------------------------------


def variable_to_record(variable: CalculationVariable) -> dict[str, Any]:
    return {
        "name": variable.name,
        "kind": variable.kind,
        "unit": variable.unit,
        "description": variable.description,
        "defaultValue": variable.default_value,
        "minValue": variable.min_value,
        "maxValue": variable.max_value,
    }


def variable_from_record(record: Mapping[str, Any]) -> CalculationVariable:
    return CalculationVariable(
        name=str(_require(record, "name", "variable")),
        kind=record.get("kind", "custom"),
        unit=str(record.get("unit") or ""),
        description=str(record.get("description") or ""),
        default_value=_optional_float(record.get("defaultValue")),
        min_value=_optional_float(record.get("minValue")),
        max_value=_optional_float(record.get("maxValue")),
    )


def logic_to_record(logic: CalculationLogic) -> dict[str, Any]:
    return {
        "id": logic.id,
        "name": logic.name,
        "formula": logic.formula,
        "variables": [variable_to_record(v) for v in logic.variables],
        "description": logic.description,
        "isDefault": logic.is_default,
    }


def logic_from_record(record: Mapping[str, Any]) -> CalculationLogic:
    return CalculationLogic(
        id=str(_require(record, "id", "calculation logic")),
        name=str(record.get("name") or ""),
        formula=str(_require(record, "formula", "calculation logic")),
        variables=tuple(variable_from_record(v) for v in record.get("variables") or ()),
        description=str(record.get("description") or ""),
        is_default=bool(record.get("isDefault", False)),
    )


def efficiency_to_record(config: EfficiencyConfig) -> dict[str, Any]:
    return {
        "id": config.id,
        "processName": config.process_name,
        "baseTime": config.base_time,
        "sizeFactor": config.size_factor,
        "complexityFactor": config.complexity_factor,
        "unit": config.unit,
        "description": config.description,
    }


def efficiency_from_record(record: Mapping[str, Any]) -> EfficiencyConfig:
    return EfficiencyConfig(
        id=str(_require(record, "id", "efficiency config")),
        process_name=str(record.get("processName") or ""),
        base_time=float(_require(record, "baseTime", "efficiency config")),
        size_factor=float(_require(record, "sizeFactor", "efficiency config")),
        complexity_factor=float(record.get("complexityFactor", 1.0)),
        unit=record.get("unit", "minute"),
        description=str(record.get("description") or ""),
    )


def template_to_record(template: ProcessTemplate) -> dict[str, Any]:
    logic = template.calculation_logic
    efficiency = template.efficiency
    return {
        "id": template.id,
        "code": template.code,
        "name": template.name,
        "category": template.category,
        "calculationLogic": logic_to_record(logic) if logic is not None else None,
        "strategy": template.strategy,
        "efficiency": efficiency_to_record(efficiency) if efficiency is not None else None,
        "requiredEquipment": list(template.required_equipment),
        "requiredMaterials": list(template.required_materials),
        "isActive": template.is_active,
        "description": template.description,
        "createdAt": _date_to_text(template.created_at),
        "updatedAt": _date_to_text(template.updated_at),
    }


def template_from_record(
    record: Mapping[str, Any], *, registry: TemplateRegistry | None = None
) -> ProcessTemplate:
    """Build a template, reusing the instance already in ``registry`` for the same id."""

    template_id = str(_require(record, "id", "process template"))
    if registry is not None and template_id in registry:
        return registry[template_id]

    logic = record.get("calculationLogic")
    efficiency = record.get("efficiency")
    template = ProcessTemplate(
        id=template_id,
        code=str(_require(record, "code", "process template")),
        name=str(record.get("name") or ""),
        category=_require(record, "category", "process template"),
        calculation_logic=logic_from_record(logic) if logic else None,
        strategy=record.get("strategy", "formula"),
        efficiency=efficiency_from_record(efficiency) if efficiency else None,
        required_equipment=tuple(record.get("requiredEquipment") or ()),
        required_materials=tuple(record.get("requiredMaterials") or ()),
        is_active=bool(record.get("isActive", True)),
        description=str(record.get("description") or ""),
        created_at=_date_from_text(_require(record, "createdAt", "process template"), field="createdAt"),
        updated_at=_date_from_text(_require(record, "updatedAt", "process template"), field="updatedAt"),
    )
    if registry is not None:
        registry[template_id] = template
    return template


# ---- components -----------------------------------------------------------


def _feature_to_record(feature: ComponentFeature) -> dict[str, Any]:
    return {
        "id": feature.id,
        "type": feature.type,
        "count": feature.count,
        "size": feature.size,
        "position": feature.position,
        "name": feature.name,
        "description": feature.description,
    }


def _feature_from_record(record: Mapping[str, Any]) -> ComponentFeature:
    return ComponentFeature(
        id=str(_require(record, "id", "feature")),
        type=_require(record, "type", "feature"),
        count=record.get("count", 0),
        size=record.get("size"),
        position=record.get("position"),
        name=str(record.get("name") or ""),
        description=str(record.get("description") or ""),
    )


def _parameter_to_record(parameter: ProcessParameter) -> dict[str, Any]:
    return {
        "name": parameter.name,
        "value": parameter.value,
        "unit": parameter.unit,
        "description": parameter.description,
    }


def _parameter_from_record(record: Mapping[str, Any]) -> ProcessParameter:
    return ProcessParameter(
        name=str(_require(record, "name", "process parameter")),
        value=_require(record, "value", "process parameter"),
        unit=record.get("unit"),
        description=record.get("description"),
    )


def _process_to_record(process: ComponentProcess) -> dict[str, Any]:
    return {
        "id": process.id,
        "template": template_to_record(process.template),
        "calculatedTime": process.calculated_time,
        "actualTime": process.actual_time,
        "status": process.status,
        "notes": process.notes,
        "parameters": [_parameter_to_record(p) for p in process.parameters],
        "equipment": process.equipment,
        "diagnostic": process.diagnostic,
    }


def _process_from_record(record: Mapping[str, Any], registry: TemplateRegistry) -> ComponentProcess:
    return ComponentProcess(
        id=str(_require(record, "id", "process")),
        template=template_from_record(_require(record, "template", "process"), registry=registry),
        actual_time=record.get("actualTime"),
        status=record.get("status", "pending"),
        notes=str(record.get("notes") or ""),
        parameters=[_parameter_from_record(p) for p in record.get("parameters") or ()],
        equipment=record.get("equipment") or None,
    )


def component_to_record(component: Component) -> dict[str, Any]:
    size = component.size
    return {
        "id": component.id,
        "name": component.name,
        "code": component.code,
        "size": {"length": size.length, "width": size.width, "thickness": size.thickness},
        "area": size.area,
        "volume": size.volume,
        "material": component.material,
        "quantity": component.quantity,
        "complexity": component.complexity,
        "features": [_feature_to_record(f) for f in component.features],
        "processes": [_process_to_record(p) for p in component.processes],
        "edgeCount": component.edge_count,
        "notes": component.notes,
        "totalTime": component.total_time,
    }


def component_from_record(
    record: Mapping[str, Any], *, registry: TemplateRegistry | None = None
) -> Component:
    registry = {} if registry is None else registry
    component_id = _require(record, "id", "component")
    try:
        size = _require(record, "size", "component")
        return Component(
            id=str(component_id),
            name=str(record.get("name") or ""),
            code=str(record.get("code") or ""),
            size=ComponentSize(
                length=_require(size, "length", "component size"),
                width=_require(size, "width", "component size"),
                thickness=_require(size, "thickness", "component size"),
            ),
            material=str(_require(record, "material", "component")),
            quantity=record.get("quantity", 1),
            complexity=record.get("complexity", "simple"),
            features=[_feature_from_record(f) for f in record.get("features") or ()],
            processes=[_process_from_record(p, registry) for p in record.get("processes") or ()],
            edge_count=record.get("edgeCount", 0),
            notes=str(record.get("notes") or ""),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid component record {component_id!r}: {exc}") from exc


# ---- products -------------------------------------------------------------


def _assembly_process_to_record(process: AssemblyProcess) -> dict[str, Any]:
    return {
        "id": process.id,
        "name": process.name,
        "description": process.description,
        "componentIds": list(process.component_ids),
        "estimatedTime": process.estimated_time,
        "status": process.status,
        "notes": process.notes,
    }


def _assembly_process_from_record(record: Mapping[str, Any]) -> AssemblyProcess:
    return AssemblyProcess(
        id=str(_require(record, "id", "assembly process")),
        name=str(record.get("name") or ""),
        description=str(record.get("description") or ""),
        component_ids=tuple(str(c) for c in record.get("componentIds") or ()),
        estimated_time=record.get("estimatedTime", 0.0),
        status=record.get("status", "pending"),
        notes=str(record.get("notes") or ""),
    )


def product_to_record(product: ProductAssembly) -> dict[str, Any]:
    totals = product.totals
    return {
        "version": RECORD_VERSION,
        "id": product.id,
        "name": product.name,
        "code": product.code,
        "description": product.description,
        "status": product.status,
        "components": [
            {
                "component": component_to_record(entry.component),
                "quantity": entry.quantity,
                "position": entry.position,
                "assemblyOrder": entry.assembly_order,
            }
            for entry in product.components
        ],
        "assemblyProcesses": [_assembly_process_to_record(p) for p in product.assembly_processes],
        "createdAt": _date_to_text(product.created_at),
        "updatedAt": _date_to_text(product.updated_at),
        "totals": {
            "totalComponents": totals.total_components,
            "totalTime": totals.total_time,
            "materialCost": totals.material_cost,
            "processCost": totals.process_cost,
            "totalCost": totals.total_cost,
            "laborCost": totals.labor_cost,
            "estimatedCost": totals.estimated_cost,
        },
        "completion": product.completion,
    }


def product_from_record(record: Mapping[str, Any]) -> ProductAssembly:
    product_id = _require(record, "id", "product")
    version = record.get("version", RECORD_VERSION)
    if version != RECORD_VERSION:
        raise ValueError(f"Unsupported product record version {version!r} for {product_id!r}")

    registry: dict[str, ProcessTemplate] = {}
    try:
        components = [
            ProductComponent(
                component=component_from_record(
                    _require(entry, "component", "product component"), registry=registry
                ),
                quantity=entry.get("quantity", 1),
                position=entry.get("position"),
                assembly_order=entry.get("assemblyOrder", 0),
            )
            for entry in record.get("components") or ()
        ]
        return ProductAssembly(
            id=str(product_id),
            name=str(record.get("name") or ""),
            code=str(record.get("code") or ""),
            description=str(record.get("description") or ""),
            components=components,
            assembly_processes=[
                _assembly_process_from_record(p) for p in record.get("assemblyProcesses") or ()
            ],
            status=record.get("status", "designing"),
            created_at=_date_from_text(_require(record, "createdAt", "product"), field="createdAt"),
            updated_at=_date_from_text(_require(record, "updatedAt", "product"), field="updatedAt"),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid product record {product_id!r}: {exc}") from exc


def dumps(product: ProductAssembly, *, indent: int | None = 2) -> str:
    return json.dumps(product_to_record(product), indent=indent, ensure_ascii=False)


def loads(text: str) -> ProductAssembly:
    try:
        record = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed product JSON: {exc}") from exc
    return product_from_record(record)


def save_product(product: ProductAssembly, path: str | Path) -> Path:
    destination = Path(path)
    destination.write_text(dumps(product), encoding="utf-8")
    logger.debug("Saved product %s to %s", product.id, destination)
    return destination


def load_product(path: str | Path) -> ProductAssembly:
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read product file {source}: {exc}") from exc
    try:
        return loads(text)
    except ValueError as exc:
        raise ValueError(f"{source.name}: {exc}") from exc


__all__ = [
    "RECORD_VERSION",
    "component_from_record",
    "component_to_record",
    "dumps",
    "efficiency_from_record",
    "efficiency_to_record",
    "load_product",
    "loads",
    "logic_from_record",
    "logic_to_record",
    "product_from_record",
    "product_to_record",
    "save_product",
    "template_from_record",
    "template_to_record",
    "variable_from_record",
    "variable_to_record",
]
