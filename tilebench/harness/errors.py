"""Exception hierarchy shared by the harness and its collaborators."""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for failures that end a benchmark run."""

    kind = "benchmark"

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"{name}: {message}")
        self.name = name


class SetupFailure(BenchmarkError):
    """Raised when a unit's setup fails; no sampling took place."""

    kind = "setup"


class IterationFailure(BenchmarkError):
    """Raised when a bench call fails; the remaining iterations are skipped."""

    kind = "iteration"

    def __init__(self, name: str, message: str, *, iteration: int) -> None:
        super().__init__(name, f"iteration {iteration}: {message}")
        self.iteration = iteration


class ProtocolViolation(AssertionError):
    """An actor received an action it does not recognize."""

    def __init__(self, action: str, recognized: tuple[str, ...]) -> None:
        super().__init__(
            f"Unrecognized actor action '{action}' "
            f"(expected one of: {', '.join(recognized)})"
        )
        self.action = action
