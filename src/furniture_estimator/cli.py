"""Command-line entry point for estimating products and checking formulas."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence, TextIO

from furniture_estimator.config import (
    AppEnvironment,
    ConfigError,
    configure_logging,
    describe_runtime_environment,
    logger,
)
from furniture_estimator.domain_models.catalog import DEFAULT_VARIABLES
from furniture_estimator.expression import get_variables, lint_formula, validate


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="furniture-estimator",
        description="Formula-driven time and cost estimates for furniture products",
    )
    parser.add_argument(
        "--print-env",
        action="store_true",
        help="Print a JSON dump of the resolved runtime configuration and exit.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the log level (defaults to FURNITURE_ESTIMATOR_LOG_LEVEL or INFO).",
    )
    subparsers = parser.add_subparsers(dest="command")

    estimate = subparsers.add_parser("estimate", help="Recalculate a product JSON export.")
    estimate.add_argument("product", help="Path to a product JSON file.")
    estimate.add_argument(
        "--rate-file",
        default=None,
        help="CSV with kind,name,rate columns overriding material and equipment rates.",
    )
    estimate.add_argument(
        "--json",
        action="store_true",
        help="Emit the recalculated product record as JSON instead of tables.",
    )

    check = subparsers.add_parser("check-formula", help="Validate a formula and list its variables.")
    check.add_argument("formula", help="Formula text, e.g. '2 + holeCount * 0.5'.")
    check.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject formulas with any grammar issue or unknown variable.",
    )
    return parser


def _run_estimate(args: argparse.Namespace, out: TextIO) -> int:
    from furniture_estimator import io
    from furniture_estimator.pricing.breakdown import (
        component_summary,
        load_rate_table,
        process_breakdown,
    )

    try:
        rates = load_rate_table(args.rate_file) if args.rate_file else None
        product = io.load_product(args.product)
    except (ConfigError, ValueError) as exc:
        logger.error("Cannot estimate %s: %s", args.product, exc)
        return 1

    totals = product.recalculate(rates=rates)

    if args.json:
        out.write(io.dumps(product))
        out.write("\n")
        return 0

    out.write(f"Product {product.id}: {product.name}\n\n")
    out.write(process_breakdown(product, rates=rates).to_string(index=False))
    out.write("\n\n")
    out.write(component_summary(product, rates=rates).to_string(index=False))
    out.write("\n\n")
    out.write(
        f"Total time:     {totals.total_time:.2f} min\n"
        f"Material cost:  {totals.material_cost:.2f}\n"
        f"Process cost:   {totals.process_cost:.2f}\n"
        f"Total cost:     {totals.total_cost:.2f}\n"
        f"Labor cost:     {totals.labor_cost:.2f}\n"
        f"Estimated cost: {totals.estimated_cost:.2f}\n"
        f"Completion:     {product.completion:.2f}%\n"
    )
    return 0


def _run_check_formula(args: argparse.Namespace, env: AppEnvironment, out: TextIO) -> int:
    strict = env.strict_formulas if args.strict is None else args.strict
    catalog = [variable.name for variable in DEFAULT_VARIABLES]
    balanced = validate(args.formula)
    issues = lint_formula(args.formula, catalog)

    out.write(f"balanced:  {balanced}\n")
    out.write(f"variables: {', '.join(get_variables(args.formula)) or '-'}\n")
    for issue in issues:
        out.write(f"issue:     {issue}\n")

    rejected = not balanced or (strict and bool(issues))
    if rejected:
        logger.error("Formula rejected: %r", args.formula)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None, *, out: TextIO | None = None) -> int:
    """Run the command-line interface; returns the process exit code."""

    out = out if out is not None else sys.stdout
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    env = AppEnvironment.from_env()
    configure_logging(args.log_level or env.log_level)

    if args.print_env:
        try:
            out.write(json.dumps(describe_runtime_environment(), indent=2, sort_keys=True))
        except ConfigError as exc:
            logger.error("Invalid configuration: %s", exc)
            return 1
        out.write("\n")
        return 0

    if args.command == "estimate":
        return _run_estimate(args, out)
    if args.command == "check-formula":
        return _run_check_formula(args, env, out)

    parser.print_help(out)
    return 1


__all__ = ["build_arg_parser", "main"]


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
