"""
Suite runner: instantiate each unit, drive it through a harness, collect outcomes.

Units run one after another so that no two benchmarks compete for the event
loop. A harness failure is recorded as a failed outcome and the runner moves
on to the next unit; protocol violations are not recorded, they propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from tilebench.config import BenchConfig
from tilebench.harness.errors import BenchmarkError
from tilebench.harness.models import RunOutcome
from tilebench.harness.runner import BenchmarkHarness
from tilebench.harness.unit import UnitFactory

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SuiteReport:
    """Outcomes of a suite run, in suite order."""

    outcomes: list[RunOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[RunOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    @property
    def ok(self) -> bool:
        return not self.failed


class SuiteRunner:
    """Drive a sequence of unit factories through :class:`BenchmarkHarness`."""

    def __init__(
        self, *, config: BenchConfig | None = None, iterations: int | None = None
    ) -> None:
        self._config = config or BenchConfig()
        self._iterations = iterations

    async def run(self, factories: Iterable[UnitFactory]) -> SuiteReport:
        report = SuiteReport()
        for factory in factories:
            unit = factory()
            harness = BenchmarkHarness(
                unit, config=self._config, iterations=self._iterations
            )
            try:
                result = await harness.run()
            except BenchmarkError as exc:
                logger.warning(f"Benchmark {harness.name} did not complete: {exc}")
                report.outcomes.append(
                    RunOutcome(
                        name=harness.name,
                        status="failed",
                        error=str(exc),
                        failure_kind=exc.kind,
                    )
                )
                continue
            report.outcomes.append(
                RunOutcome(name=harness.name, status="complete", result=result)
            )
        return report
