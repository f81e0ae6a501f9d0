from __future__ import annotations

import asyncio
import time

import pytest

from tilebench.config import BenchConfig
from tilebench.harness.errors import IterationFailure, ProtocolViolation, SetupFailure
from tilebench.harness.runner import BenchmarkHarness


class RecordingUnit:
    """Unit that records lifecycle events and overlapping bench calls."""

    def __init__(self, *, delay: float = 0.0, fail_at: int | None = None) -> None:
        self.name = "recording"
        self.delay = delay
        self.fail_at = fail_at
        self.events: list[str] = []
        self.bench_calls = 0
        self.active = 0
        self.peak_active = 0

    async def setup(self) -> None:
        await asyncio.sleep(0)
        self.events.append("setup")

    async def bench(self) -> None:
        index = self.bench_calls
        self.bench_calls += 1
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        self.events.append(f"bench-start-{index}")
        await asyncio.sleep(self.delay)
        self.active -= 1
        self.events.append(f"bench-end-{index}")
        if self.fail_at is not None and index == self.fail_at:
            raise RuntimeError(f"synthetic failure at {index}")


class SyncUnit:
    name = "sync"

    def __init__(self) -> None:
        self.setup_calls = 0
        self.bench_calls = 0

    def setup(self) -> None:
        self.setup_calls += 1

    def bench(self) -> int:
        self.bench_calls += 1
        return self.bench_calls


@pytest.mark.asyncio
@pytest.mark.parametrize("n", [0, 1, 7])
async def test_run_iterations_calls_bench_exactly_n_times(n: int) -> None:
    unit = RecordingUnit()
    harness = BenchmarkHarness(unit)

    elapsed = await harness.run_iterations(n)

    assert unit.bench_calls == n
    assert elapsed >= 0.0


@pytest.mark.asyncio
async def test_run_iterations_never_overlaps_bench_calls() -> None:
    unit = RecordingUnit(delay=0.001)
    harness = BenchmarkHarness(unit)

    await harness.run_iterations(5)

    assert unit.peak_active == 1
    expected: list[str] = []
    for index in range(5):
        expected += [f"bench-start-{index}", f"bench-end-{index}"]
    assert unit.events == expected


@pytest.mark.asyncio
async def test_run_iterations_zero_is_near_instant() -> None:
    unit = RecordingUnit()
    harness = BenchmarkHarness(unit)

    elapsed = await harness.run_iterations(0)

    assert unit.bench_calls == 0
    assert 0.0 <= elapsed < 5.0


@pytest.mark.asyncio
async def test_run_iterations_rejects_negative_count() -> None:
    harness = BenchmarkHarness(RecordingUnit())

    with pytest.raises(ValueError):
        await harness.run_iterations(-1)


@pytest.mark.asyncio
async def test_run_iterations_uses_injected_clock() -> None:
    ticks = iter([100.0, 101.0, 103.0, 104.0, 110.0, 112.0])
    harness = BenchmarkHarness(SyncUnit(), clock=lambda: next(ticks))

    elapsed = await harness.run_iterations(2)

    assert elapsed == 12.0


@pytest.mark.asyncio
async def test_run_sets_up_once_then_samples() -> None:
    unit = RecordingUnit()
    harness = BenchmarkHarness(unit, iterations=4)

    result = await harness.run()

    assert unit.events[0] == "setup"
    assert unit.events.count("setup") == 1
    assert unit.bench_calls == 4
    assert result.name == "recording"
    assert result.iterations == 4
    assert len(result.samples_ms) == 4
    assert result.regression == [(4, result.elapsed_ms)]
    assert result.elapsed_ms >= sum(result.samples_ms) * 0.999


@pytest.mark.asyncio
async def test_run_defaults_to_ten_iterations() -> None:
    unit = SyncUnit()

    result = await BenchmarkHarness(unit).run()

    assert unit.setup_calls == 1
    assert unit.bench_calls == 10
    assert result.iterations == 10


@pytest.mark.asyncio
async def test_iteration_count_comes_from_config() -> None:
    unit = SyncUnit()

    await BenchmarkHarness(unit, config=BenchConfig(sample_count=2)).run()

    assert unit.bench_calls == 2


@pytest.mark.asyncio
async def test_setup_failure_prevents_sampling() -> None:
    class FailingSetup(RecordingUnit):
        async def setup(self) -> None:
            raise ConnectionError("fixture fetch failed")

    unit = FailingSetup()
    harness = BenchmarkHarness(unit)

    with pytest.raises(SetupFailure) as excinfo:
        await harness.run()

    assert unit.bench_calls == 0
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert excinfo.value.kind == "setup"


@pytest.mark.asyncio
async def test_iteration_failure_aborts_remaining_calls() -> None:
    unit = RecordingUnit(fail_at=2)
    harness = BenchmarkHarness(unit, iterations=10)

    with pytest.raises(IterationFailure) as excinfo:
        await harness.run()

    assert unit.bench_calls == 3
    assert excinfo.value.iteration == 2
    assert "synthetic failure" in str(excinfo.value)


@pytest.mark.asyncio
async def test_protocol_violation_is_not_wrapped() -> None:
    class Violating(SyncUnit):
        def bench(self) -> None:
            raise ProtocolViolation("getTiles", ("getGlyphs", "getImages"))

    with pytest.raises(ProtocolViolation):
        await BenchmarkHarness(Violating(), iterations=3).run()


@pytest.mark.asyncio
async def test_setup_completes_before_first_measurement() -> None:
    order: list[str] = []

    class SlowSetup:
        name = "slow-setup"

        async def setup(self) -> None:
            await asyncio.sleep(0.01)
            order.append("setup-done")

        async def bench(self) -> None:
            order.append("bench")

    await BenchmarkHarness(SlowSetup(), iterations=2).run()

    assert order == ["setup-done", "bench", "bench"]


@pytest.mark.performance
@pytest.mark.asyncio
async def test_elapsed_covers_fixed_bench_delay() -> None:
    class FixedDelay:
        name = "fixed-delay"

        def setup(self) -> None:
            return None

        async def bench(self) -> None:
            deadline = time.perf_counter() + 0.005
            while time.perf_counter() < deadline:
                await asyncio.sleep(deadline - time.perf_counter())

    elapsed = await BenchmarkHarness(FixedDelay()).run_iterations(10)

    assert elapsed >= 50.0
