from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

import pytest

from furniture_estimator import config
from furniture_estimator.config import EstimationParams
from furniture_estimator.domain_models.catalog import DEFAULT_PROCESS_TEMPLATES, ProcessTemplate
from furniture_estimator.domain_models.component import Component, ComponentFeature, ComponentSize
from furniture_estimator.domain_models.product import ProductAssembly
from furniture_estimator.pricing.rate_defaults import RateTable


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep every test on the packaged settings unless it opts into an override."""

    for name in (config.APP_SETTINGS_ENV_VAR, config.LOG_LEVEL_ENV_VAR, config.STRICT_ENV_VAR):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_APP_SETTINGS_CACHE", None)
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture
def rates() -> RateTable:
    return RateTable()


@pytest.fixture
def params() -> EstimationParams:
    return EstimationParams()


@pytest.fixture
def templates() -> dict[str, ProcessTemplate]:
    return {template.code: template for template in DEFAULT_PROCESS_TEMPLATES}


@pytest.fixture
def make_component(templates: dict[str, ProcessTemplate]) -> Callable[..., Component]:
    """Factory for a 1200 x 600 x 18 mm density board panel with chosen processes."""

    def _make(
        id: str = "side-panel",
        *,
        length: float = 1200,
        width: float = 600,
        thickness: float = 18,
        material: str = "density_board",
        complexity: str = "medium",
        holes: int = 0,
        codes: Iterable[str] = ("CUT",),
        edge_count: int = 0,
    ) -> Component:
        features = [ComponentFeature(id="holes", type="hole", count=holes)] if holes else []
        component = Component(
            id=id,
            name=id.replace("-", " ").title(),
            size=ComponentSize(length, width, thickness),
            material=material,
            complexity=complexity,  # type: ignore[arg-type]
            features=features,
            edge_count=edge_count,
        )
        for code in codes:
            component.add_process(templates[code])
        return component

    return _make


@pytest.fixture
def sample_product(make_component: Callable[..., Component]) -> ProductAssembly:
    product = ProductAssembly(id="wardrobe-1", name="Wardrobe", code="WR-1")
    product.add_component(make_component("side-panel", holes=4, codes=("CUT", "DRILL")))
    product.add_component(
        make_component("shelf", length=800, width=400, complexity="simple", codes=("CUT", "EDGE", "SAND"))
    )
    return product
