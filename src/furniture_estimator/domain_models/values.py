"""Domain-level value coercion helpers."""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

_CENT = Decimal("0.01")


def normalize_key(name: Any) -> str:
    """Return a casefolded/underscore representation of *name*.

    Unicode letters and digits are kept, so ``"实木板"`` stays ``"实木板"``.
    """

    return re.sub(r"[\W_]+", "_", str(name or "").casefold()).strip("_")


def to_float(value: Any) -> float | None:
    """Best-effort conversion of ``value`` to a finite float."""

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def safe_float(value: Any, default: float = 0.0) -> float:
    """Return ``value`` as a float, or ``default`` when it cannot be coerced."""

    numeric = to_float(value)
    return default if numeric is None else numeric


def round2(value: Any) -> float:
    """Round half-up to two decimals; non-numeric or non-finite input gives ``0.0``."""

    numeric = to_float(value)
    if numeric is None:
        return 0.0
    try:
        quantized = Decimal(repr(numeric)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return 0.0
    return float(quantized) + 0.0  # folds -0.0 into 0.0


def coerce_choice(value: Any, choices: Iterable[str], *, field: str) -> str:
    """Normalise ``value`` onto one of ``choices`` or raise :class:`ValueError`.

    Matching ignores case and treats ``_`` and spaces like ``-`` so that
    ``"In Progress"`` resolves to ``"in-progress"``.
    """

    options = tuple(choices)
    text = re.sub(r"[\s_]+", "-", str(value or "").strip().lower())
    if text in options:
        return text
    raise ValueError(f"Unknown {field} {value!r}; expected one of {', '.join(options)}")


def non_negative(value: Any, *, field: str) -> float:
    """Return ``value`` as a finite float >= 0 or raise :class:`ValueError`."""

    numeric = to_float(value)
    if numeric is None or numeric < 0:
        raise ValueError(f"{field} must be a non-negative number, got {value!r}")
    return numeric


def whole_number(value: Any, *, field: str, minimum: int = 0) -> int:
    numeric = to_float(value)
    if numeric is None or not numeric.is_integer() or numeric < minimum:
        raise ValueError(f"{field} must be an integer >= {minimum}, got {value!r}")
    return int(numeric)


def next_id(prefix: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    index = len(taken) + 1
    while f"{prefix}-{index}" in taken:
        index += 1
    return f"{prefix}-{index}"


__all__ = [
    "coerce_choice",
    "next_id",
    "non_negative",
    "normalize_key",
    "round2",
    "safe_float",
    "to_float",
    "whole_number",
]
