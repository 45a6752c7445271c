"""Products: components arranged into an assembly with live rollups."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Iterator, Literal

from .catalog import utcnow
from .component import PROCESS_STATUSES, Component, ProcessStatus
from .values import coerce_choice, next_id, non_negative, whole_number

if TYPE_CHECKING:  # pragma: no cover - for static type checkers only
    from furniture_estimator.config import EstimationParams
    from furniture_estimator.pricing.estimator import ProductTotals
    from furniture_estimator.pricing.rate_defaults import RateTable

ProductStatus = Literal["designing", "in-production", "completed"]
PRODUCT_STATUSES: tuple[str, ...] = ("designing", "in-production", "completed")


def _estimator_module():
    from furniture_estimator.pricing import estimator as _estimator

    return _estimator


@dataclass
class ProductComponent:
    """A component placed in a product.

    ``quantity`` counts how many times the part is fitted. Rollups are taken per
    component, so it is informational and does not scale product totals.
    """

    component: Component
    quantity: int = 1
    position: str | None = None
    assembly_order: int = 0

    def __post_init__(self) -> None:
        self.quantity = whole_number(self.quantity, field="quantity", minimum=1)
        self.assembly_order = whole_number(self.assembly_order, field="assembly_order")


@dataclass
class AssemblyProcess:
    """A product-level step that joins components; timed by hand."""

    id: str
    name: str
    description: str = ""
    component_ids: tuple[str, ...] = ()
    estimated_time: float = 0.0
    status: ProcessStatus = "pending"
    notes: str = ""

    def __post_init__(self) -> None:
        self.component_ids = tuple(self.component_ids)
        self.estimated_time = non_negative(self.estimated_time, field="estimated_time")
        self.status = coerce_choice(self.status, PROCESS_STATUSES, field="process status")  # type: ignore[assignment]

    def set_status(self, status: str) -> None:
        self.status = coerce_choice(status, PROCESS_STATUSES, field="process status")  # type: ignore[assignment]


@dataclass
class ProductAssembly:
    """A finished furniture item made of components.

    ``totals`` and the values read from it are recomputed from the current
    components on every access, so edits made directly on a component are
    reflected without any extra call.  :meth:`recalculate` selects the rate
    table and estimation parameters those rollups use.
    """

    id: str
    name: str
    code: str = ""
    description: str = ""
    components: list[ProductComponent] = field(default_factory=list)
    assembly_processes: list[AssemblyProcess] = field(default_factory=list)
    status: ProductStatus = "designing"
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    _rates: "RateTable | None" = field(default=None, init=False, repr=False, compare=False)
    _params: "EstimationParams | None" = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.status = coerce_choice(self.status, PRODUCT_STATUSES, field="product status")  # type: ignore[assignment]
        self.components = list(self.components)
        self.assembly_processes = list(self.assembly_processes)
        self.recalculate()

    # ---- derived values -------------------------------------------------

    @property
    def totals(self) -> "ProductTotals":
        components = [entry.component for entry in self.components]
        return _estimator_module().recompute_product_totals(
            components, rates=self._rates, params=self._params
        )

    @property
    def total_components(self) -> int:
        return len(self.components)

    @property
    def total_time(self) -> float:
        return self.totals.total_time

    @property
    def total_cost(self) -> float:
        return self.totals.total_cost

    @property
    def estimated_cost(self) -> float:
        return self.totals.estimated_cost

    @property
    def completion(self) -> float:
        return _estimator_module().product_completion(self)

    def recalculate(
        self,
        rates: "RateTable | None" = None,
        params: "EstimationParams | None" = None,
    ) -> "ProductTotals":
        """Re-derive every component and return fresh :attr:`totals`.

        ``rates`` and ``params``, when given, are kept for later rollups;
        otherwise the configured defaults (or the last ones given) apply.
        """

        if rates is not None:
            self._rates = rates
        if params is not None:
            self._params = params
        for entry in self.components:
            entry.component.recalculate()
        return self.totals

    # ---- lookups --------------------------------------------------------

    def component(self, component_id: str) -> Component:
        for entry in self.components:
            if entry.component.id == component_id:
                return entry.component
        raise KeyError(f"Product {self.id!r} has no component {component_id!r}")

    # ---- mutators -------------------------------------------------------

    def _touch(self) -> None:
        self.updated_at = utcnow()

    def add_component(
        self,
        component: Component,
        *,
        quantity: int = 1,
        position: str | None = None,
        assembly_order: int | None = None,
    ) -> ProductComponent:
        if any(entry.component.id == component.id for entry in self.components):
            raise ValueError(f"Product {self.id!r} already contains component {component.id!r}")
        entry = ProductComponent(
            component=component,
            quantity=quantity,
            position=position,
            assembly_order=len(self.components) + 1 if assembly_order is None else assembly_order,
        )
        self.components.append(entry)
        self._touch()
        self.recalculate()
        return entry

    def remove_component(self, component_id: str) -> Component:
        component = self.component(component_id)
        self.components = [entry for entry in self.components if entry.component is not component]
        self._touch()
        self.recalculate()
        return component

    @contextmanager
    def editing(self, component_id: str) -> Iterator[Component]:
        """Yield a component for editing and stamp the product as updated afterwards."""

        component = self.component(component_id)
        try:
            yield component
        finally:
            self._touch()
            self.recalculate()

    def add_assembly_process(
        self,
        name: str,
        *,
        component_ids: Iterable[str] = (),
        estimated_time: float = 0.0,
        description: str = "",
        id: str | None = None,
    ) -> AssemblyProcess:
        process = AssemblyProcess(
            id=id or next_id("assembly", (p.id for p in self.assembly_processes)),
            name=name,
            description=description,
            component_ids=tuple(component_ids),
            estimated_time=estimated_time,
        )
        self.assembly_processes.append(process)
        self._touch()
        return process

    def set_status(self, status: str) -> None:
        self.status = coerce_choice(status, PRODUCT_STATUSES, field="product status")  # type: ignore[assignment]
        self._touch()


__all__ = [
    "PRODUCT_STATUSES",
    "AssemblyProcess",
    "ProductAssembly",
    "ProductComponent",
    "ProductStatus",
]
