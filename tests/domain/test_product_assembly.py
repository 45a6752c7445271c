from __future__ import annotations

import math
import random
from typing import Callable

import pytest

from furniture_estimator.domain_models.catalog import DEFAULT_PROCESS_TEMPLATES, ProcessTemplate
from furniture_estimator.domain_models.component import Component
from furniture_estimator.domain_models.product import ProductAssembly
from furniture_estimator.pricing.estimator import (
    compute_process_duration,
    recompute_component_totals,
    recompute_product_totals,
)
from furniture_estimator.pricing.rate_defaults import RateTable


def _assert_rollups_consistent(product: ProductAssembly) -> None:
    components = [entry.component for entry in product.components]
    for component in components:
        for process in component.processes:
            assert process.calculated_time == compute_process_duration(
                component, process.template, parameters=process.parameters
            )
        assert component.total_time == pytest.approx(
            sum(p.calculated_time for p in component.processes), abs=0.01
        )

    component_totals = [recompute_component_totals(c) for c in components]
    assert product.totals == recompute_product_totals(components)
    assert product.total_time == pytest.approx(sum(t.total_time for t in component_totals), abs=0.01)
    assert product.total_cost == pytest.approx(sum(t.total_cost for t in component_totals), abs=0.01)
    assert product.total_components == len(components)


def test_new_product_has_zero_totals() -> None:
    product = ProductAssembly(id="p", name="Empty")

    assert product.totals is not None
    assert product.total_time == 0.0
    assert product.total_cost == 0.0
    assert product.estimated_cost == 0.0
    assert product.completion == 0.0
    assert product.status == "designing"


def test_sample_product_totals(sample_product: ProductAssembly) -> None:
    _assert_rollups_consistent(sample_product)
    assert sample_product.total_components == 2
    assert [entry.assembly_order for entry in sample_product.components] == [1, 2]


def test_add_and_remove_component_update_totals(
    sample_product: ProductAssembly, make_component: Callable[..., Component]
) -> None:
    before = sample_product.total_time
    created = sample_product.updated_at

    sample_product.add_component(make_component("door", codes=("CUT", "PAINT")))
    assert sample_product.total_time > before
    assert sample_product.updated_at >= created
    _assert_rollups_consistent(sample_product)

    sample_product.remove_component("door")
    assert sample_product.total_time == pytest.approx(before)
    with pytest.raises(KeyError):
        sample_product.remove_component("door")


def test_duplicate_component_ids_are_rejected(
    sample_product: ProductAssembly, make_component: Callable[..., Component]
) -> None:
    with pytest.raises(ValueError, match="already contains"):
        sample_product.add_component(make_component("shelf"))


def test_editing_reaggregates_product(sample_product: ProductAssembly) -> None:
    before = sample_product.totals

    with sample_product.editing("shelf") as shelf:
        shelf.resize(length=1600)

    assert sample_product.totals != before
    _assert_rollups_consistent(sample_product)


def test_direct_component_edits_reach_product_totals(
    sample_product: ProductAssembly, templates: dict[str, ProcessTemplate]
) -> None:
    before = sample_product.total_cost
    shelf = sample_product.component("shelf")

    shelf.resize(length=2400)
    assert sample_product.total_cost > before
    _assert_rollups_consistent(sample_product)

    shelf.set_material("solid_wood")
    shelf.add_process(templates["PAINT"])
    sample_product.component("side-panel").set_feature_count("holes", 10)
    _assert_rollups_consistent(sample_product)


def test_recalculate_keeps_chosen_rates(sample_product: ProductAssembly, rates: RateTable) -> None:
    pricier = rates.with_overrides(materials={"density_board": 90})

    sample_product.recalculate(rates=pricier)
    sample_product.component("shelf").resize(width=500)
    sample_product.recalculate()

    components = [entry.component for entry in sample_product.components]
    assert sample_product.totals == recompute_product_totals(components, rates=pricier)
    assert sample_product.totals.material_cost > recompute_product_totals(components).material_cost


def test_completion_counts_assembly_processes(sample_product: ProductAssembly) -> None:
    assembly = sample_product.add_assembly_process("Fit shelves", component_ids=["shelf"], estimated_time=12)
    leaves = [p for entry in sample_product.components for p in entry.component.processes]

    for process in leaves:
        process.set_status("completed")
    assert sample_product.completion == pytest.approx(round(len(leaves) / (len(leaves) + 1) * 100, 2))

    assembly.set_status("completed")
    assert sample_product.completion == 100.0


def test_product_status_values(sample_product: ProductAssembly) -> None:
    sample_product.set_status("In Production")
    assert sample_product.status == "in-production"
    with pytest.raises(ValueError):
        sample_product.set_status("shipped")


def _mutate_component(rng: random.Random, component: Component) -> None:
    action = rng.randrange(7)
    if action == 0:
        component.resize(
            length=rng.uniform(100, 2400),
            width=rng.uniform(50, 1200),
            thickness=rng.choice([12, 18, 25, 30, 40]),
        )
    elif action == 1:
        component.add_feature(rng.choice(["hole", "groove", "chamfer", "rounding", "custom"]), rng.randrange(0, 12))
    elif action == 2 and component.features:
        component.remove_feature(rng.choice(component.features).id)
    elif action == 3:
        component.add_process(rng.choice(DEFAULT_PROCESS_TEMPLATES))
    elif action == 4 and component.processes:
        component.remove_process(rng.choice(component.processes).id)
    elif action == 5:
        component.set_complexity(rng.choice(["simple", "medium", "complex"]))
    else:
        component.set_material(rng.choice(["solid_wood", "plywood", "fire_rated_board", "walnut"]))


def _random_mutation(rng: random.Random, product: ProductAssembly) -> None:
    entry = rng.choice(product.components)
    if rng.random() < 0.5:
        _mutate_component(rng, entry.component)
        return
    with product.editing(entry.component.id) as component:
        _mutate_component(rng, component)


@pytest.mark.parametrize("seed", range(6))
def test_random_mutations_keep_rollups_consistent(seed: int, sample_product: ProductAssembly) -> None:
    rng = random.Random(seed)

    for _ in range(40):
        _random_mutation(rng, sample_product)
        _assert_rollups_consistent(sample_product)
        assert all(
            math.isfinite(p.calculated_time) and p.calculated_time >= 0
            for entry in sample_product.components
            for p in entry.component.processes
        )
