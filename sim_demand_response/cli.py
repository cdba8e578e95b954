from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from .day_utils import MINUTES_PER_DAY
from .db.session import init_db
from .distributions import DiscretizedDistribution, HistogramDistribution, NormalDistribution
from .errors import MalformedInputError
from .parsing import parse_pricing_scheme, parse_scheme
from .persistence import PersistenceService
from .response import ShiftingPolicy


def _add_distribution_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--normal",
        nargs=2,
        type=float,
        metavar=("MEAN", "SIGMA"),
        help="Normal distribution with the given mean and standard deviation",
    )
    group.add_argument("--param-file", help="Normal distribution parameter file")
    group.add_argument("--histogram-file", help="Histogram file (index-value rows)")
    group.add_argument("--stored", help="Name of a distribution stored in the database")
    parser.add_argument(
        "--precompute",
        nargs=3,
        type=int,
        metavar=("START", "END", "BINS"),
        default=None,
        help="Discretization range for Normal distributions (default 0 1440 1440)",
    )
    parser.add_argument(
        "--residual-mode",
        choices=["proportional", "equal"],
        default=None,
        help="How out-of-range mass is folded back on precompute",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    """
    Build the CLI argument parser used by entry points.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(description="Appliance demand-response shifting CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    validate = sub.add_parser("validate-scheme", help="Validate a pricing scheme file")
    validate.add_argument("file", help="Scheme file with HH:MM-HH:MM-price lines")

    status = sub.add_parser("status", help="Print parameters and bins of a distribution")
    _add_distribution_arguments(status)

    sample = sub.add_parser("sample", help="Draw bins from a distribution")
    _add_distribution_arguments(sample)
    sample.add_argument("--n", type=int, default=10, help="Number of draws")
    sample.add_argument("--seed", type=int, default=None, help="RNG seed")

    shift = sub.add_parser("shift", help="Shift a start-time distribution to a new pricing scheme")
    _add_distribution_arguments(shift)
    shift.add_argument("--base-scheme", required=True, help="Baseline pricing scheme file")
    shift.add_argument("--new-scheme", required=True, help="New pricing scheme file")
    shift.add_argument(
        "--policy",
        choices=[policy.value for policy in ShiftingPolicy],
        default=ShiftingPolicy.NORMAL.value,
        help="Shifting policy",
    )
    shift.add_argument("--window", type=int, default=None, help="Shifting window in minutes")
    shift.add_argument("--binned", action="store_true", help="Aggregate output into ten-minute bins")
    shift.add_argument("--save", metavar="NAME", help="Commit the shift and store it under NAME")

    distributions = sub.add_parser("distributions", help="Manage stored distributions")
    dist_sub = distributions.add_subparsers(dest="distributions_command")
    dist_sub.add_parser("list", help="List stored distributions")

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _read_scheme(path: str | Path) -> np.ndarray:
    file_path = Path(path)
    if not file_path.exists():
        raise SystemExit(f"File not found: {file_path}")
    try:
        return parse_scheme(file_path.read_text(encoding="utf-8"))
    except MalformedInputError as exc:
        raise SystemExit(f"Invalid pricing scheme ({file_path}): {exc}") from exc


def _build_distribution(
    args: argparse.Namespace,
    persistence: PersistenceService | None,
) -> DiscretizedDistribution:
    try:
        if args.normal:
            distribution: DiscretizedDistribution = NormalDistribution(
                args.normal[0], args.normal[1], residual_mode=args.residual_mode
            )
        elif args.param_file:
            distribution = NormalDistribution.from_file(args.param_file, residual_mode=args.residual_mode)
        elif args.histogram_file:
            distribution = HistogramDistribution.from_file(args.histogram_file)
        else:
            loaded = persistence.load_distribution(args.stored) if persistence else None
            if loaded is None:
                raise SystemExit(f"Distribution not found: {args.stored}")
            distribution = loaded
    except FileNotFoundError as exc:
        raise SystemExit(f"File not found: {exc.filename}") from exc
    except ValueError as exc:
        raise SystemExit(f"Invalid distribution: {exc}") from exc

    if args.precompute is not None:
        start, end, n_bins = args.precompute
        if not distribution.precompute(start, end, n_bins):
            raise SystemExit("Invalid precompute range")
    elif not distribution.precomputed:
        distribution.precompute(0, MINUTES_PER_DAY, MINUTES_PER_DAY)
    return distribution


def main(argv: Sequence[str] | None = None) -> None:
    """
    Entry point for the command-line interface.
    """
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    if args.command == "validate-scheme":
        file_path = Path(args.file)
        if not file_path.exists():
            raise SystemExit(f"File not found: {file_path}")
        line = parse_pricing_scheme(file_path.read_text(encoding="utf-8"))
        if line is None:
            print("Pricing scheme is valid.")
            return
        print(f"Pricing scheme error at line {line}.")
        sys.exit(1)

    needs_db = args.command == "distributions" or getattr(args, "stored", None) or getattr(args, "save", None)
    persistence: PersistenceService | None = None
    if needs_db:
        init_db()
        persistence = PersistenceService()

    if args.command == "status":
        print(_build_distribution(args, persistence).status())
        return

    if args.command == "sample":
        distribution = _build_distribution(args, persistence)
        rng = np.random.default_rng(args.seed)
        _print_json([distribution.sample_bin(rng) for _ in range(args.n)])
        return

    if args.command == "shift":
        distribution = _build_distribution(args, persistence)
        base = _read_scheme(args.base_scheme)
        new = _read_scheme(args.new_scheme)
        try:
            if args.save:
                result = distribution.shift(args.policy, base, new, window=args.window)
            else:
                result = distribution.shift_preview(
                    args.policy, base, new, binned=args.binned, window=args.window
                )
        except ValueError as exc:
            raise SystemExit(f"Cannot shift distribution: {exc}") from exc
        if not result.ok:
            raise SystemExit(f"Shift rejected: {result.reason}")
        if args.save:
            record = persistence.upsert_distribution(distribution, name=args.save)
            print(f"Distribution '{record.name}' stored with ID {record.id}.")
            return
        _print_json({"policy": result.policy.value, "bins": [float(v) for v in result.bins]})
        return

    if args.command == "distributions":
        if args.distributions_command == "list":
            records = persistence.list_distributions()
            _print_json(
                [
                    {"id": rec.id, "name": rec.name, "type": rec.distribution_type, "bins": len(rec.bins)}
                    for rec in records
                ]
            )
            return
        parser.error("Specify a distributions subcommand (list).")

    parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
