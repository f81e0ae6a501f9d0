"""
Command-line runner for the registered benchmark suites.

Usage patterns:
    python -m tilebench list
    python -m tilebench run buffer
    python -m tilebench run buffer --coordinate 0/0/0 --iterations 20
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from tilebench.benchmarks.registry import build_suite, suite_names
from tilebench.config import BenchConfig
from tilebench.fixtures.coordinates import Coordinate
from tilebench.harness.suite import SuiteReport, SuiteRunner

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "list":
        for name in suite_names():
            print(name)
        return 0

    if args.command == "run":
        try:
            config = BenchConfig.from_env()
        except ValueError as exc:
            parser.error(f"Invalid environment configuration: {exc}")
        if args.iterations is not None and args.iterations < 0:
            parser.error("--iterations must be >= 0")
        try:
            coordinates = (
                [Coordinate.parse(value) for value in args.coordinate]
                if args.coordinate
                else None
            )
        except ValueError as exc:
            parser.error(str(exc))
        try:
            factories = build_suite(args.suite, config, coordinates=coordinates)
        except KeyError as exc:
            raise SystemExit(exc.args[0]) from exc

        runner = SuiteRunner(config=config, iterations=args.iterations)
        report = asyncio.run(runner.run(factories))
        print(_render_report(report))
        return 0 if report.ok else 1

    parser.error(f"Unknown command: {args.command}")  # pragma: no cover
    return 2  # pragma: no cover


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilebench", description="Vector tile micro-benchmark runner"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List registered benchmark suites")

    run = subparsers.add_parser("run", help="Run a benchmark suite")
    run.add_argument("suite", help="Name of the suite to run")
    run.add_argument(
        "--coordinate",
        action="append",
        help="Tile coordinate as zoom/row/column (can be provided multiple times)",
    )
    run.add_argument(
        "--iterations",
        type=int,
        help="Bench calls per unit (defaults to TILEBENCH_SAMPLE_COUNT or 10)",
    )

    return parser


def _render_report(report: SuiteReport) -> str:
    return json.dumps(
        [outcome.model_dump(mode="json") for outcome in report.outcomes], indent=2
    )
