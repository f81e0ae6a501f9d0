"""Capability contract implemented by every benchmark unit."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BenchmarkUnit(Protocol):
    """
    A pluggable measured workload.

    ``setup`` is called once before sampling and may set private state that
    ``bench`` later reads. ``bench`` is the measured work; it is called many
    times and must not modify what ``setup`` produced. Either method may
    return an awaitable, in which case the harness waits for it.
    """

    name: str

    def setup(self) -> Awaitable[None] | None:
        ...

    def bench(self) -> Awaitable[Any] | Any:
        ...


UnitFactory = Callable[[], BenchmarkUnit]
