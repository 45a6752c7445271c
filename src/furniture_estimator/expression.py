"""Arithmetic formula engine for process time calculations.

Formulas are plain infix arithmetic over numeric literals and bare
identifiers, for example ``5 + (area / 10000) * 0.5 * complexity``.  The
engine tokenizes the text, converts it to postfix with a shunting-yard pass
and evaluates the postfix sequence against a variable environment.

Identifiers are bound through a symbol table while the postfix sequence is
evaluated; the formula text is never rewritten.  :func:`evaluate` never
raises: every failure collapses to ``0.0`` and a logged diagnostic.  Callers
that want to see the diagnostic use :func:`evaluate_detailed`.

Supported grammar is intentionally small: ``+ - * / ^``, parentheses, decimal
literals and identifiers.  Unary minus, function calls and scientific
notation are not supported and are rejected by :func:`lint_formula`.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)

__all__ = [
    "OPERATORS",
    "EvaluationResult",
    "FormulaError",
    "evaluate",
    "evaluate_detailed",
    "format_formula",
    "get_variables",
    "is_identifier",
    "is_number",
    "lint_formula",
    "to_postfix",
    "tokenize",
    "validate",
]

OPERATORS: Mapping[str, int] = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 3}
_PARENS = frozenset("()")
_SINGLE_CHAR_TOKENS = frozenset(OPERATORS) | _PARENS

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER_RE = re.compile(r"^(?:\d+\.\d*|\.\d+|\d+)$")


class FormulaError(ValueError):
    """Raised when a formula is rejected at authoring time."""

    def __init__(self, formula: str, issues: Sequence[str]) -> None:
        self.formula = formula
        self.issues = tuple(issues)
        detail = "; ".join(self.issues) or "invalid formula"
        super().__init__(f"Invalid formula {formula!r}: {detail}")


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of a formula evaluation.

    ``value`` is always a finite float; it is ``0.0`` whenever ``ok`` is
    false.  ``diagnostic`` explains a failure, or carries a note such as a
    saturated division by zero when ``ok`` is true.
    """

    value: float
    ok: bool = True
    diagnostic: str | None = None


class _EvaluationFailure(Exception):
    pass


def is_number(token: str) -> bool:
    return bool(_NUMBER_RE.match(token))


def is_identifier(token: str) -> bool:
    return bool(_IDENTIFIER_RE.match(token))


def tokenize(formula: str) -> list[str]:
    """Split ``formula`` into operator, parenthesis and operand tokens."""

    tokens: list[str] = []
    current: list[str] = []

    for char in formula or "":
        if char.isspace():
            if current:
                tokens.append("".join(current))
                current = []
            continue
        if char in _SINGLE_CHAR_TOKENS:
            if current:
                tokens.append("".join(current))
                current = []
            tokens.append(char)
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))
    return tokens


def _parens_balanced(tokens: Iterable[str]) -> bool:
    stack: list[str] = []
    for token in tokens:
        if token == "(":
            stack.append(token)
        elif token == ")":
            if not stack:
                return False
            stack.pop()
    return not stack


def validate(formula: str) -> bool:
    """Return ``True`` when the parentheses in ``formula`` are balanced.

    This is a weak check only: operator arity and variable binding are not
    verified.  Use :func:`lint_formula` for a strict grammar check.
    """

    return _parens_balanced(tokenize(formula))


def get_variables(formula: str) -> list[str]:
    """Return the identifiers referenced by ``formula`` in first-seen order."""

    seen: dict[str, None] = {}
    for token in tokenize(formula):
        if is_identifier(token) and token not in seen:
            seen[token] = None
    return list(seen)


def to_postfix(expression: str | Sequence[str]) -> list[str]:
    """Convert an infix formula (or its tokens) to postfix order."""

    tokens = tokenize(expression) if isinstance(expression, str) else list(expression)
    output: list[str] = []
    stack: list[str] = []

    for token in tokens:
        if token == "(":
            stack.append(token)
        elif token == ")":
            while stack and stack[-1] != "(":
                output.append(stack.pop())
            if stack:
                stack.pop()
        elif token in OPERATORS:
            precedence = OPERATORS[token]
            while stack and stack[-1] != "(" and OPERATORS[stack[-1]] >= precedence:
                output.append(stack.pop())
            stack.append(token)
        else:
            output.append(token)

    while stack:
        top = stack.pop()
        if top != "(":
            output.append(top)
    return output


def _render_number(value: float) -> str:
    numeric = float(value)
    if math.isfinite(numeric) and numeric.is_integer():
        return str(int(numeric))
    return repr(numeric)


def _resolve_operand(token: str, environment: Mapping[str, float]) -> float:
    if is_number(token):
        return float(token)
    if is_identifier(token):
        if token not in environment:
            raise _EvaluationFailure(f"unbound identifier {token!r}")
        try:
            value = float(environment[token])
        except (TypeError, ValueError) as exc:
            raise _EvaluationFailure(f"non-numeric value for {token!r}") from exc
        if not math.isfinite(value):
            raise _EvaluationFailure(f"non-finite value for {token!r}")
        return value
    raise _EvaluationFailure(f"invalid token {token!r}")


def _apply_operator(operator: str, a: float, b: float, notes: list[str]) -> float:
    if operator == "+":
        return a + b
    if operator == "-":
        return a - b
    if operator == "*":
        return a * b
    if operator == "/":
        if b == 0:
            notes.append("division by zero evaluated as 0")
            return 0.0
        return a / b
    if operator == "^":
        try:
            return math.pow(a, b)
        except (OverflowError, ValueError) as exc:
            raise _EvaluationFailure(f"cannot evaluate {a!r} ^ {b!r}: {exc}") from exc
    raise _EvaluationFailure(f"unknown operator {operator!r}")


def _evaluate_postfix(
    postfix: Sequence[str], environment: Mapping[str, float], notes: list[str]
) -> float:
    stack: list[float] = []
    for token in postfix:
        if token in OPERATORS:
            if len(stack) < 2:
                raise _EvaluationFailure(f"operator {token!r} is missing an operand")
            b = stack.pop()
            a = stack.pop()
            stack.append(_apply_operator(token, a, b, notes))
        else:
            stack.append(_resolve_operand(token, environment))

    if not stack:
        raise _EvaluationFailure("formula is empty")
    if len(stack) > 1:
        raise _EvaluationFailure(f"{len(stack) - 1} operand(s) without an operator")

    result = stack[0]
    if not math.isfinite(result):
        raise _EvaluationFailure("result is not finite")
    return result


def evaluate_detailed(formula: str, environment: Mapping[str, float] | None = None) -> EvaluationResult:
    """Evaluate ``formula`` and report success alongside the value."""

    env = environment or {}
    tokens = tokenize(formula)
    if not _parens_balanced(tokens):
        return EvaluationResult(0.0, ok=False, diagnostic="unbalanced parentheses")

    notes: list[str] = []
    try:
        value = _evaluate_postfix(to_postfix(tokens), env, notes)
    except _EvaluationFailure as exc:
        return EvaluationResult(0.0, ok=False, diagnostic=str(exc))

    return EvaluationResult(value, ok=True, diagnostic="; ".join(notes) or None)


def evaluate(formula: str, environment: Mapping[str, float] | None = None) -> float:
    """Evaluate ``formula`` returning ``0.0`` on any failure."""

    result = evaluate_detailed(formula, environment)
    if not result.ok:
        logger.warning("Formula evaluation failed for %r: %s", formula, result.diagnostic)
    return result.value


def format_formula(formula: str, environment: Mapping[str, float]) -> str:
    """Render ``formula`` with each bound identifier shown as ``name(value)``."""

    formatted = formula
    for name, value in environment.items():
        pattern = re.compile(rf"\b{re.escape(name)}\b")
        rendered = f"{name}({_render_number(value)})"
        formatted = pattern.sub(lambda _match, text=rendered: text, formatted)
    return formatted


def lint_formula(formula: str, catalog: Iterable[str] | None = None) -> list[str]:
    """Return grammar problems in ``formula``; an empty list means it is well formed.

    When ``catalog`` is supplied, identifiers missing from it are reported too.
    """

    tokens = tokenize(formula)
    issues: list[str] = []
    if not tokens:
        return ["formula is empty"]
    if not _parens_balanced(tokens):
        issues.append("unbalanced parentheses")

    known = set(catalog) if catalog is not None else None
    expect_operand = True
    for index, token in enumerate(tokens):
        position = index + 1
        if token == "(":
            if not expect_operand:
                issues.append(f"token {position}: '(' follows an operand")
            expect_operand = True
        elif token == ")":
            if expect_operand:
                issues.append(f"token {position}: ')' closes an incomplete expression")
            expect_operand = False
        elif token in OPERATORS:
            if expect_operand:
                issues.append(f"token {position}: operator {token!r} is missing a left operand")
            expect_operand = True
        else:
            if not (is_number(token) or is_identifier(token)):
                issues.append(f"token {position}: invalid token {token!r}")
            elif known is not None and is_identifier(token) and token not in known:
                issues.append(f"token {position}: unknown variable {token!r}")
            if not expect_operand:
                issues.append(f"token {position}: {token!r} follows an operand without an operator")
            expect_operand = False

    if expect_operand:
        issues.append("formula ends with an operator")
    return issues
