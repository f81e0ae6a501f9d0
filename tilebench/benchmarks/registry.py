"""Named benchmark suites available to runners."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from tilebench.benchmarks.buffer import buffer_suite
from tilebench.config import BenchConfig
from tilebench.fixtures.coordinates import Coordinate
from tilebench.harness.unit import UnitFactory

SuiteBuilder = Callable[..., list[UnitFactory]]

SUITES: dict[str, SuiteBuilder] = {
    "buffer": buffer_suite,
}


def suite_names() -> list[str]:
    return sorted(SUITES)


def build_suite(
    name: str,
    config: BenchConfig,
    *,
    coordinates: Iterable[Coordinate] | None = None,
    **options: Any,
) -> list[UnitFactory]:
    """Build the unit factories of the suite registered under ``name``."""
    if name not in SUITES:
        raise KeyError(f"No benchmark suite named '{name}'")
    if coordinates is not None:
        options["coordinates"] = tuple(coordinates)
    return SUITES[name](config, **options)
