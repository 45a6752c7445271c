"""Tests for value coercion helpers."""
from __future__ import annotations

import math

import pytest

from furniture_estimator.domain_models.values import (
    coerce_choice,
    next_id,
    non_negative,
    normalize_key,
    round2,
    safe_float,
    to_float,
    whole_number,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (2.675, 2.68),
        (1.005, 1.01),
        (70.52000000000001, 70.52),
        (-1.005, -1.01),
        (4, 4.0),
        ("3.14159", 3.14),
    ],
)
def test_round2_rounds_half_up(raw: object, expected: float) -> None:
    assert round2(raw) == expected


@pytest.mark.parametrize("raw", [float("nan"), float("inf"), None, "abc", True])
def test_round2_maps_unusable_input_to_zero(raw: object) -> None:
    assert round2(raw) == 0.0


def test_round2_never_returns_negative_zero() -> None:
    assert math.copysign(1.0, round2(-0.001)) == 1.0


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Solid Wood", "solid_wood"),
        ("  CNC-Cutter ", "cnc_cutter"),
        ("fire_rated_board", "fire_rated_board"),
        ("实木板", "实木板"),
        (" 数控 切割机 ", "数控_切割机"),
        ("Straße", "strasse"),
        (None, ""),
    ],
)
def test_normalize_key(raw: object, expected: str) -> None:
    assert normalize_key(raw) == expected


def test_to_float_rejects_bools_and_non_finite() -> None:
    assert to_float(True) is None
    assert to_float(" 2.5 ") == 2.5
    assert to_float(float("inf")) is None
    assert safe_float("oops", 7.0) == 7.0


@pytest.mark.parametrize(
    "raw,expected",
    [("In Progress", "in-progress"), ("in_progress", "in-progress"), ("COMPLETED", "completed")],
)
def test_coerce_choice_normalises_labels(raw: str, expected: str) -> None:
    assert coerce_choice(raw, ("pending", "in-progress", "completed"), field="status") == expected


def test_coerce_choice_rejects_unknown_labels() -> None:
    with pytest.raises(ValueError, match="Unknown status"):
        coerce_choice("paused", ("pending", "completed"), field="status")


def test_numeric_validators() -> None:
    assert non_negative("3", field="length") == 3.0
    assert whole_number(2.0, field="count") == 2
    with pytest.raises(ValueError):
        non_negative(-1, field="length")
    with pytest.raises(ValueError):
        whole_number(1.5, field="count")
    with pytest.raises(ValueError):
        whole_number(0, field="quantity", minimum=1)


def test_next_id_skips_taken_ids() -> None:
    assert next_id("cut", []) == "cut-1"
    assert next_id("cut", ["cut-2"]) == "cut-3"
    assert next_id("cut", ["cut-1", "cut-3"]) == "cut-4"
    assert next_id("cut", ["x", "cut-3"]) == "cut-4"
