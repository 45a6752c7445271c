"""Shared material prices, equipment rates and their fallbacks."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from furniture_estimator.domain_models.values import normalize_key, to_float

__all__ = [
    "DEFAULT_EQUIPMENT_RATE",
    "DEFAULT_MATERIAL_PRICE",
    "EQUIPMENT_HOURLY_RATES",
    "FIRE_RATED_MATERIALS",
    "MATERIAL_UNIT_PRICES",
    "SOLID_WOOD_MATERIALS",
    "THICK_BOARD_COST_FACTOR",
    "THICK_BOARD_MM",
    "RateTable",
    "equipment_hourly_rate",
    "material_unit_price",
]

logger = logging.getLogger(__name__)

# Unit prices per square metre, keyed by normalised material name.
MATERIAL_UNIT_PRICES: Mapping[str, float] = MappingProxyType(
    {
        "solid_wood": 120.0,
        "density_board": 45.0,
        "mdf": 45.0,
        "particle_board": 35.0,
        "multilayer_board": 60.0,
        "plywood": 50.0,
        "medium_fiber_board": 40.0,
        "fire_rated_board": 80.0,
        "eco_board": 70.0,
        # Names used by the shop's own catalogue.
        "实木板": 120.0,
        "密度板": 45.0,
        "中密度纤维板": 45.0,
        "刨花板": 35.0,
        "多层板": 60.0,
        "胶合板": 50.0,
        "中纤板": 40.0,
        "防火板": 80.0,
        "生态板": 70.0,
    }
)
"""Read-only material prices (currency per m²)."""

# Hourly rates keyed by normalised equipment name.
EQUIPMENT_HOURLY_RATES: Mapping[str, float] = MappingProxyType(
    {
        "cutting_saw": 80.0,
        "cnc_cutter": 120.0,
        "edge_bander": 100.0,
        "drilling_machine": 90.0,
        "assembly_tools": 60.0,
        "sander": 70.0,
        "spray_booth": 150.0,
        "packaging_equipment": 50.0,
        "切割机": 80.0,
        "数控切割机": 120.0,
        "封边机": 100.0,
        "钻孔机": 90.0,
        "组装工具": 60.0,
        "打磨机": 70.0,
        "喷漆设备": 150.0,
        "包装设备": 50.0,
    }
)
"""Read-only equipment rates (currency per hour)."""

DEFAULT_MATERIAL_PRICE = 50.0
DEFAULT_EQUIPMENT_RATE = 80.0

THICK_BOARD_MM = 25.0           # boards thicker than this cost and take more
THICK_BOARD_COST_FACTOR = 1.5

SOLID_WOOD_MATERIALS = frozenset({"solid_wood", "实木板"})
FIRE_RATED_MATERIALS = frozenset({"fire_rated_board", "防火板"})


def _lookup(table: Mapping[str, float], name: Any, default: float, *, kind: str) -> float:
    key = normalize_key(name)
    if key in table:
        return float(table[key])
    logger.debug("No %s rate for %r; using default %.2f", kind, name, default)
    return float(default)


def material_unit_price(material: Any, *, default: float = DEFAULT_MATERIAL_PRICE) -> float:
    """Return the built-in unit price for ``material`` (per m²)."""

    return _lookup(MATERIAL_UNIT_PRICES, material, default, kind="material")


def equipment_hourly_rate(equipment: Any, *, default: float = DEFAULT_EQUIPMENT_RATE) -> float:
    """Return the built-in hourly rate for ``equipment``."""

    return _lookup(EQUIPMENT_HOURLY_RATES, equipment, default, kind="equipment")


def _normalise_rates(values: Mapping[str, Any], *, kind: str) -> dict[str, float]:
    normalised: dict[str, float] = {}
    for name, raw in values.items():
        key = normalize_key(name)
        if not key:
            raise ValueError(f"Empty {kind} name in rate overrides")
        rate = to_float(raw)
        if rate is None or rate < 0:
            raise ValueError(f"{kind} rate for {name!r} must be a non-negative number, got {raw!r}")
        normalised[key] = rate
    return normalised


@dataclass(frozen=True)
class RateTable:
    """Material prices and equipment rates with their fallback values.

    The tables are stored read-only; :meth:`with_overrides` returns a new
    table rather than editing this one.
    """

    materials: Mapping[str, float] = field(default_factory=lambda: dict(MATERIAL_UNIT_PRICES))
    equipment: Mapping[str, float] = field(default_factory=lambda: dict(EQUIPMENT_HOURLY_RATES))
    default_material_price: float = DEFAULT_MATERIAL_PRICE
    default_equipment_rate: float = DEFAULT_EQUIPMENT_RATE

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "materials", MappingProxyType(_normalise_rates(self.materials, kind="material"))
        )
        object.__setattr__(
            self, "equipment", MappingProxyType(_normalise_rates(self.equipment, kind="equipment"))
        )

    def material_price(self, material: Any) -> float:
        return _lookup(self.materials, material, self.default_material_price, kind="material")

    def equipment_rate(self, equipment: Any) -> float:
        if not equipment:
            return float(self.default_equipment_rate)
        return _lookup(self.equipment, equipment, self.default_equipment_rate, kind="equipment")

    def with_overrides(
        self,
        *,
        materials: Mapping[str, Any] | None = None,
        equipment: Mapping[str, Any] | None = None,
    ) -> "RateTable":
        """Return a copy with ``materials``/``equipment`` entries replaced or added."""

        merged_materials = dict(self.materials)
        merged_materials.update(_normalise_rates(materials or {}, kind="material"))
        merged_equipment = dict(self.equipment)
        merged_equipment.update(_normalise_rates(equipment or {}, kind="equipment"))
        return RateTable(
            materials=merged_materials,
            equipment=merged_equipment,
            default_material_price=self.default_material_price,
            default_equipment_rate=self.default_equipment_rate,
        )
