"""Command line entry point printing a percentile table.

Usage::

    python -m percentile_sharing 3 1 4 1 5 9 2 6 --percentiles 0.25 0.5 0.75
    python -m percentile_sharing --config percentiles.yaml 3 1 4 1 5

Without values the table for ``0, 10, ..., 90`` is printed for every
percentile from 0 to 1 in steps of ``--step``.
"""

import argparse
import math
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import DEFAULT_POLICIES, PercentileConfig
from .exceptions import PercentileSharingError
from .percentiles import compute_from_config, percentile_table

DEMO_VALUES = [float(v) for v in range(0, 100, 10)]
STEP_TOLERANCE = 1e-9


def _percentile_steps(step: float) -> List[float]:
    """Percentiles from 0 to 1 inclusive, *step* apart."""
    count = math.floor(1.0 / step + STEP_TOLERANCE)
    steps = [i * step for i in range(count + 1)]
    if 1.0 - steps[-1] <= STEP_TOLERANCE:
        steps[-1] = 1.0
    else:
        steps.append(1.0)
    return steps


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="percentile_sharing",
        description="Compute percentiles of numeric values with several interpolation policies",
    )
    parser.add_argument("values", nargs="*", type=float, help="Values to summarise")
    parser.add_argument(
        "--percentiles", nargs="+", type=float, help="Percentile fractions in [0, 1]"
    )
    parser.add_argument(
        "--step", type=float, default=0.05, help="Percentile step when none are given"
    )
    parser.add_argument(
        "--policies",
        nargs="+",
        default=list(DEFAULT_POLICIES),
        choices=list(DEFAULT_POLICIES),
        help="Interpolation policies (table columns)",
    )
    parser.add_argument("--config", help="YAML configuration with explicit requests")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line interface.

    Args:
        argv: Arguments, defaulting to ``sys.argv[1:]``.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    values = args.values or DEMO_VALUES

    try:
        if args.config:
            config = PercentileConfig.from_yaml(args.config)
            config.setup_logging()
            results = compute_from_config(values, config)
            for label, value in results.items():
                print(f"{label:>20} : {value}")
            return 0

        if not 0.0 < args.step <= 1.0:
            print(f"--step must be within (0, 1], got {args.step}", file=sys.stderr)
            return 2
        percentiles = args.percentiles or _percentile_steps(args.step)
        table = percentile_table(values, percentiles, args.policies)
    except (PercentileSharingError, ValidationError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(table.to_string(float_format=lambda v: f"{v:.3f}"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
