"""
Benchmark harness driving a unit through its lifecycle.

``run`` executes ``setup`` once, then samples ``bench`` a fixed number of
times. Calls never overlap: iteration k+1 starts only after the awaitable
returned by iteration k has settled, so each sample is attributable to a
single call. There is no timeout; a ``bench`` that never settles blocks the
run.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable
from typing import Any

from tilebench.config import DEFAULT_SAMPLE_COUNT, BenchConfig
from tilebench.harness.errors import IterationFailure, ProtocolViolation, SetupFailure
from tilebench.harness.models import BenchmarkResult
from tilebench.harness.unit import BenchmarkUnit

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


async def _settle(value: Any) -> Any:
    """Await ``value`` when the unit handed back a pending computation."""
    if inspect.isawaitable(value):
        return await value
    return value


class BenchmarkHarness:
    """Run ``setup`` once and time repeated, strictly sequential ``bench`` calls."""

    def __init__(
        self,
        unit: BenchmarkUnit,
        *,
        config: BenchConfig | None = None,
        iterations: int | None = None,
        clock: Clock = _monotonic_ms,
    ) -> None:
        if iterations is None:
            iterations = config.sample_count if config else DEFAULT_SAMPLE_COUNT
        if iterations < 0:
            raise ValueError("iterations must be >= 0")
        self._unit = unit
        self._iterations = iterations
        self._clock = clock
        self._samples: list[float] = []

    @property
    def name(self) -> str:
        return getattr(self._unit, "name", type(self._unit).__name__)

    @property
    def iterations(self) -> int:
        return self._iterations

    async def run(self) -> BenchmarkResult:
        """
        Execute the full lifecycle and return the timing result.

        Raises:
            SetupFailure: ``setup`` raised; ``bench`` was never called.
            IterationFailure: a ``bench`` call raised; later calls were skipped.
        """
        logger.info(f"Setting up benchmark {self.name}")
        try:
            await _settle(self._unit.setup())
        except ProtocolViolation:
            raise
        except Exception as exc:
            logger.error(f"Setup failed for {self.name}: {exc}", exc_info=True)
            raise SetupFailure(self.name, str(exc)) from exc

        elapsed = await self.run_iterations(self._iterations)
        samples = list(self._samples)
        logger.info(
            f"Benchmark {self.name} finished {self._iterations} iterations "
            f"in {elapsed:.3f} ms"
        )
        return BenchmarkResult(
            name=self.name,
            iterations=self._iterations,
            elapsed_ms=elapsed,
            samples_ms=samples,
            regression=[(self._iterations, elapsed)],
        )

    async def run_iterations(self, n: int) -> float:
        """Call ``bench`` exactly ``n`` times in sequence; return elapsed milliseconds."""
        if n < 0:
            raise ValueError("n must be >= 0")

        self._samples = []
        samples: list[float] = []
        start = self._clock()
        for index in range(n):
            call_start = self._clock()
            try:
                await _settle(self._unit.bench())
            except ProtocolViolation:
                raise
            except Exception as exc:
                logger.error(
                    f"Benchmark {self.name} failed at iteration {index}: {exc}",
                    exc_info=True,
                )
                raise IterationFailure(self.name, str(exc), iteration=index) from exc
            samples.append(max(0.0, self._clock() - call_start))
        elapsed = max(0.0, self._clock() - start)

        self._samples = samples
        return elapsed
