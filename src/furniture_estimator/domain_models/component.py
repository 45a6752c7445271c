"""Components, their features and the process instances attached to them."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Iterable, Literal

from .catalog import ProcessTemplate
from .values import coerce_choice, next_id, non_negative, round2, to_float, whole_number

Complexity = Literal["simple", "medium", "complex"]
FeatureType = Literal["hole", "groove", "chamfer", "rounding", "custom"]
ProcessStatus = Literal["pending", "in-progress", "completed"]

COMPLEXITY_LEVELS: tuple[str, ...] = ("simple", "medium", "complex")
FEATURE_TYPES: tuple[str, ...] = ("hole", "groove", "chamfer", "rounding", "custom")
PROCESS_STATUSES: tuple[str, ...] = ("pending", "in-progress", "completed")


def _estimator_module():
    """Return the estimator module, imported late to break the import cycle."""

    from furniture_estimator.pricing import estimator as _estimator

    return _estimator


@dataclass(frozen=True)
class ComponentSize:
    """Panel dimensions in millimetres; area and volume are always derived."""

    length: float
    width: float
    thickness: float

    def __post_init__(self) -> None:
        for name in ("length", "width", "thickness"):
            object.__setattr__(self, name, non_negative(getattr(self, name), field=name))

    @property
    def area(self) -> float:
        return self.length * self.width

    @property
    def volume(self) -> float:
        return self.length * self.width * self.thickness

    @property
    def area_m2(self) -> float:
        return self.area / 1_000_000.0

    @property
    def perimeter_m(self) -> float:
        return 2.0 * (self.length + self.width) / 1000.0


@dataclass
class ComponentFeature:
    id: str
    type: FeatureType
    count: int = 0
    size: float | None = None
    position: str | None = None
    name: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        self.type = coerce_choice(self.type, FEATURE_TYPES, field="feature type")  # type: ignore[assignment]
        self.count = whole_number(self.count, field="feature count")
        if self.size is not None:
            self.size = non_negative(self.size, field="feature size")


@dataclass
class ProcessParameter:
    """A per-process input; numeric values extend the formula environment."""

    name: str
    value: float | str
    unit: str | None = None
    description: str | None = None

    @property
    def numeric_value(self) -> float | None:
        return to_float(self.value)


@dataclass
class ComponentProcess:
    """A process template applied to one component.

    ``calculated_time`` (minutes) and ``diagnostic`` are written only by
    :meth:`Component.recalculate`.
    """

    id: str
    template: ProcessTemplate
    calculated_time: float = 0.0
    actual_time: float | None = None
    status: ProcessStatus = "pending"
    notes: str = ""
    parameters: list[ProcessParameter] = field(default_factory=list)
    equipment: str | None = None
    diagnostic: str | None = None

    def __post_init__(self) -> None:
        self.status = coerce_choice(self.status, PROCESS_STATUSES, field="process status")  # type: ignore[assignment]
        if self.actual_time is not None:
            self.actual_time = non_negative(self.actual_time, field="actual_time")
        self.parameters = list(self.parameters)

    def set_status(self, status: str) -> None:
        # Any transition is allowed, including moving back to pending.
        self.status = coerce_choice(status, PROCESS_STATUSES, field="process status")  # type: ignore[assignment]


@dataclass
class Component:
    """A furniture part: geometry, material, features and its processes."""

    id: str
    name: str
    size: ComponentSize
    material: str
    quantity: int = 1
    complexity: Complexity = "simple"
    features: list[ComponentFeature] = field(default_factory=list)
    processes: list[ComponentProcess] = field(default_factory=list)
    code: str = ""
    edge_count: int = 0
    notes: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.size, ComponentSize):
            raise TypeError(f"size must be a ComponentSize, got {type(self.size).__name__}")
        self.quantity = whole_number(self.quantity, field="quantity", minimum=1)
        self.edge_count = whole_number(self.edge_count, field="edge_count")
        self.complexity = coerce_choice(self.complexity, COMPLEXITY_LEVELS, field="complexity")  # type: ignore[assignment]
        self.features = list(self.features)
        self.processes = list(self.processes)
        self.recalculate()

    # ---- derived values -------------------------------------------------

    @property
    def total_time(self) -> float:
        """Sum of the calculated process times, in minutes."""

        return round2(math.fsum(process.calculated_time for process in self.processes))

    @property
    def completion(self) -> float:
        return _estimator_module().completion_percentage(p.status for p in self.processes)

    @property
    def status(self) -> ProcessStatus:
        percent = self.completion
        if percent >= 100.0:
            return "completed"
        if percent > 0.0:
            return "in-progress"
        return "pending"

    def recalculate(self) -> None:
        """Re-derive every process time from the component's current state."""

        estimator = _estimator_module()
        for process in self.processes:
            result = estimator.evaluate_process_duration(
                self, process.template, parameters=process.parameters
            )
            process.calculated_time = result.minutes
            process.diagnostic = result.diagnostic

    # ---- lookups --------------------------------------------------------

    def process(self, process_id: str) -> ComponentProcess:
        for process in self.processes:
            if process.id == process_id:
                return process
        raise KeyError(f"Component {self.id!r} has no process {process_id!r}")

    def feature(self, feature_id: str) -> ComponentFeature:
        for feature in self.features:
            if feature.id == feature_id:
                return feature
        raise KeyError(f"Component {self.id!r} has no feature {feature_id!r}")

    # ---- mutators; each ends with a full recalculation -------------------

    def resize(
        self,
        *,
        length: float | None = None,
        width: float | None = None,
        thickness: float | None = None,
    ) -> None:
        changes = {
            name: value
            for name, value in (("length", length), ("width", width), ("thickness", thickness))
            if value is not None
        }
        self.size = replace(self.size, **changes)
        self.recalculate()

    def set_material(self, material: str) -> None:
        self.material = material
        self.recalculate()

    def set_complexity(self, complexity: str) -> None:
        self.complexity = coerce_choice(complexity, COMPLEXITY_LEVELS, field="complexity")  # type: ignore[assignment]
        self.recalculate()

    def set_quantity(self, quantity: int) -> None:
        self.quantity = whole_number(quantity, field="quantity", minimum=1)
        self.recalculate()

    def set_edge_count(self, edge_count: int) -> None:
        self.edge_count = whole_number(edge_count, field="edge_count")
        self.recalculate()

    def add_feature(
        self,
        type: str,
        count: int,
        *,
        id: str | None = None,
        size: float | None = None,
        position: str | None = None,
        name: str = "",
    ) -> ComponentFeature:
        feature = ComponentFeature(
            id=id or next_id("feature", (f.id for f in self.features)),
            type=type,  # type: ignore[arg-type]
            count=count,
            size=size,
            position=position,
            name=name,
        )
        self.features.append(feature)
        self.recalculate()
        return feature

    def set_feature_count(self, feature_id: str, count: int) -> None:
        self.feature(feature_id).count = whole_number(count, field="feature count")
        self.recalculate()

    def remove_feature(self, feature_id: str) -> ComponentFeature:
        feature = self.feature(feature_id)
        self.features.remove(feature)
        self.recalculate()
        return feature

    def add_process(
        self,
        template: ProcessTemplate,
        *,
        id: str | None = None,
        parameters: Iterable[ProcessParameter] = (),
        equipment: str | None = None,
        status: str = "pending",
        notes: str = "",
    ) -> ComponentProcess:
        process = ComponentProcess(
            id=id or next_id(template.code.lower(), (p.id for p in self.processes)),
            template=template,
            parameters=list(parameters),
            equipment=equipment,
            status=status,  # type: ignore[arg-type]
            notes=notes,
        )
        self.processes.append(process)
        self.recalculate()
        return process

    def update_process(
        self,
        process_id: str,
        *,
        template: ProcessTemplate | None = None,
        parameters: Iterable[ProcessParameter] | None = None,
        equipment: str | None = None,
        actual_time: float | None = None,
    ) -> ComponentProcess:
        process = self.process(process_id)
        if template is not None:
            process.template = template
        if parameters is not None:
            process.parameters = list(parameters)
        if equipment is not None:
            process.equipment = equipment or None
        if actual_time is not None:
            process.actual_time = non_negative(actual_time, field="actual_time")
        self.recalculate()
        return process

    def remove_process(self, process_id: str) -> ComponentProcess:
        process = self.process(process_id)
        self.processes.remove(process)
        self.recalculate()
        return process


__all__ = [
    "COMPLEXITY_LEVELS",
    "FEATURE_TYPES",
    "PROCESS_STATUSES",
    "Complexity",
    "Component",
    "ComponentFeature",
    "ComponentProcess",
    "ComponentSize",
    "FeatureType",
    "ProcessParameter",
    "ProcessStatus",
]
